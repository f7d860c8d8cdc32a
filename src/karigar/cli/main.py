from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

from ..advisor import AdvisoryClient
from ..config import load_storage_path
from ..errors import KarigarError
from ..imaging import compress_image, ensure_upload_size
from ..logging import get_logger
from ..paths import expand_abs
from ..store import DataStore, SqliteKeyValueStore
from ..store.constants import LANGUAGE_CHOICES, PRODUCT_CATEGORIES
from ..store.insights import category_distribution, dashboard_metrics, most_common_category, top_products
from ..store.settings import SETTING_OPTIONS, currency_symbol

LOG = get_logger("cli-main")


def _open_store(ns: argparse.Namespace) -> DataStore:
    db_path = ns.db or load_storage_path(os.getcwd())
    kv = SqliteKeyValueStore(expand_abs(db_path) if db_path else None, root_dir=os.getcwd())
    return DataStore(kv)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _read_image(path: Optional[str], max_dimension: int = 800, quality: float = 0.8) -> str:
    if not path:
        return ""
    data = ensure_upload_size(expand_abs(path))
    return compress_image(data, max_dimension, quality)


# ---------- user ----------
def _add_user_cli(subparsers: argparse._SubParsersAction) -> None:
    login = subparsers.add_parser("login", help="Sign in (replaces the stored profile)")
    login.add_argument("--username", required=True)
    login.add_argument("--email", default="")
    login.add_argument("--name", default="")
    login.add_argument("--language", choices=LANGUAGE_CHOICES, default="en")

    def _login(ns: argparse.Namespace) -> int:
        store = _open_store(ns)
        existing = store.get_user()
        if existing and existing.username == ns.username:
            LOG.info("Welcome back, %s", existing.name or existing.username)
            _print_json(existing.to_dict())
            return 0
        profile = store.create_user(ns.username, email=ns.email, name=ns.name, language=ns.language)
        _print_json(profile.to_dict())
        return 0

    login.set_defaults(handler=_login)

    def _logout(ns: argparse.Namespace) -> int:
        _open_store(ns).logout()
        LOG.info("Logged out")
        return 0

    subparsers.add_parser("logout", help="Remove the stored profile").set_defaults(handler=_logout)

    def _whoami(ns: argparse.Namespace) -> int:
        user = _open_store(ns).get_user()
        if user is None:
            LOG.warning("Not signed in")
            return 1
        _print_json(user.to_dict())
        return 0

    subparsers.add_parser("whoami", help="Show the stored profile").set_defaults(handler=_whoami)


# ---------- products ----------
def _add_product_fields(p: argparse.ArgumentParser, *, required: bool) -> None:
    p.add_argument("--title", required=required)
    p.add_argument("--description", required=required)
    p.add_argument("--price", required=required, help="Price as entered, e.g. 299")
    p.add_argument("--category", required=required, help=f"Suggested: {', '.join(PRODUCT_CATEGORIES)}")
    p.add_argument("--image", help="Path to a product photo (max 5 MB)")
    p.add_argument("--keyword", action="append", dest="keywords")
    p.add_argument("--hashtag", action="append", dest="hashtags")
    p.add_argument("--seo-suggestion")
    p.add_argument("--pricing-tip", action="append", dest="pricing_tips")


def _fields_from_args(ns: argparse.Namespace) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for name in ("title", "description", "price", "category", "keywords", "hashtags", "seo_suggestion", "pricing_tips"):
        value = getattr(ns, name, None)
        if value is not None:
            fields[name] = value
    if ns.image:
        fields["image"] = _read_image(ns.image)
    return fields


def _add_products_cli(subparsers: argparse._SubParsersAction) -> None:
    products = subparsers.add_parser("products", help="Manage product listings")
    sub = products.add_subparsers(dest="products_command", required=True)

    add = sub.add_parser("add", help="Save a new product")
    _add_product_fields(add, required=True)
    add.add_argument("--generate", action="store_true", help="Let the AI advisor polish the listing first")

    def _add(ns: argparse.Namespace) -> int:
        store = _open_store(ns)
        fields = _fields_from_args(ns)
        if ns.generate:
            listing = AdvisoryClient().generate_product_listing(ns.title, ns.description, ns.price, ns.category)
            generated = listing.to_product_fields(price=ns.price, category=ns.category, image=fields.get("image", ""))
            fields = {**generated, **{k: v for k, v in fields.items() if k in ("keywords", "hashtags") and v}}
        product = store.save_product(fields)
        LOG.info("Product saved: %s", product.id)
        _print_json(product.to_dict())
        return 0

    add.set_defaults(handler=_add)

    def _list(ns: argparse.Namespace) -> int:
        store = _open_store(ns)
        symbol = currency_symbol(store.get_setting("region"))
        rows = []
        for p in store.get_products():
            row = p.to_dict()
            row["image"] = "<data URL>" if p.image else None
            row["displayPrice"] = f"{symbol}{p.price}"
            rows.append(row)
        _print_json(rows)
        return 0

    sub.add_parser("list", help="List products in insertion order").set_defaults(handler=_list)

    update = sub.add_parser("update", help="Change fields of an existing product")
    update.add_argument("product_id")
    _add_product_fields(update, required=False)

    def _update(ns: argparse.Namespace) -> int:
        updated = _open_store(ns).update_product(ns.product_id, _fields_from_args(ns))
        if updated is None:
            LOG.error("Product not found: %s", ns.product_id)
            return 1
        _print_json(updated.to_dict())
        return 0

    update.set_defaults(handler=_update)

    delete = sub.add_parser("delete", help="Delete a product")
    delete.add_argument("product_id")

    def _delete(ns: argparse.Namespace) -> int:
        if not _open_store(ns).delete_product(ns.product_id):
            LOG.error("Product not found: %s", ns.product_id)
            return 1
        LOG.info("Product deleted: %s", ns.product_id)
        return 0

    delete.set_defaults(handler=_delete)

    view = sub.add_parser("view", help="Record a view of a product")
    view.add_argument("product_id")

    def _view(ns: argparse.Namespace) -> int:
        store = _open_store(ns)
        store.increment_product_views(ns.product_id)
        product = store.get_product(ns.product_id)
        if product is None:
            LOG.error("Product not found: %s", ns.product_id)
            return 1
        LOG.info("View recorded (%s total)", product.views)
        return 0

    view.set_defaults(handler=_view)


# ---------- chats ----------
def _history_lines(store: DataStore, limit: int = 3) -> List[str]:
    lines: List[str] = []
    for record in store.get_chats()[-limit:]:
        lines.append(f"user: {record.message}")
        lines.append(f"assistant: {record.response}")
    return lines


def _add_chat_cli(subparsers: argparse._SubParsersAction) -> None:
    chat = subparsers.add_parser("chat", help="Ask the AI assistant for business advice")
    chat.add_argument("message")

    def _chat(ns: argparse.Namespace) -> int:
        store = _open_store(ns)
        response = AdvisoryClient().chat(ns.message, store.get_products(), _history_lines(store))
        store.save_chat_message(ns.message, response)
        print(response)
        return 0

    chat.set_defaults(handler=_chat)

    chats = subparsers.add_parser("chats", help="Chat history")
    sub = chats.add_subparsers(dest="chats_command", required=True)

    def _list(ns: argparse.Namespace) -> int:
        _print_json([c.to_dict() for c in _open_store(ns).get_chats()])
        return 0

    sub.add_parser("list", help="Show chat history").set_defaults(handler=_list)

    def _clear(ns: argparse.Namespace) -> int:
        _open_store(ns).clear_chats()
        LOG.info("Chat history cleared")
        return 0

    sub.add_parser("clear", help="Delete all chat history").set_defaults(handler=_clear)


# ---------- analytics / settings / data ----------
def _add_data_cli(subparsers: argparse._SubParsersAction) -> None:
    def _analytics(ns: argparse.Namespace) -> int:
        store = _open_store(ns)
        analytics = store.get_analytics()
        products = store.get_products()
        _print_json({
            "metrics": dashboard_metrics(analytics),
            "weeklyStats": [b.to_dict() for b in analytics.weekly_stats],
            "categories": category_distribution(products),
            "topProducts": top_products(products),
        })
        return 0

    subparsers.add_parser("analytics", help="Show totals and weekly activity").set_defaults(handler=_analytics)

    settings = subparsers.add_parser("settings", help="Read or change preferences")
    sub = settings.add_subparsers(dest="settings_command", required=True)
    get = sub.add_parser("get", help="Show one or all settings")
    get.add_argument("name", nargs="?", choices=sorted(SETTING_OPTIONS))

    def _get(ns: argparse.Namespace) -> int:
        store = _open_store(ns)
        if ns.name:
            print(store.get_setting(ns.name))
        else:
            _print_json(store.get_settings())
        return 0

    get.set_defaults(handler=_get)

    set_cmd = sub.add_parser("set", help="Change a setting")
    set_cmd.add_argument("name", choices=sorted(SETTING_OPTIONS))
    set_cmd.add_argument("value")

    def _set(ns: argparse.Namespace) -> int:
        _open_store(ns).save_setting(ns.name, ns.value)
        LOG.info("Saved %s=%s", ns.name, ns.value)
        return 0

    set_cmd.set_defaults(handler=_set)

    export = subparsers.add_parser("export", help="Write all data to a JSON file")
    export.add_argument("--output", help="Output path (default: stdout)")

    def _export(ns: argparse.Namespace) -> int:
        data = _open_store(ns).export_data()
        if not ns.output:
            print(data)
            return 0
        out = expand_abs(ns.output)
        os.makedirs(os.path.dirname(out) or ".", exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            f.write(data)
        LOG.info(f"Wrote: {out}")
        return 0

    export.set_defaults(handler=_export)

    imp = subparsers.add_parser("import", help="Restore products, chats and analytics from an export")
    imp.add_argument("path")

    def _import(ns: argparse.Namespace) -> int:
        with open(expand_abs(ns.path), "r", encoding="utf-8") as f:
            ok = _open_store(ns).import_data(f.read())
        return 0 if ok else 1

    imp.set_defaults(handler=_import)

    reset = subparsers.add_parser("reset", help="Drop products, chats and analytics (or one collection)")
    reset.add_argument("--collection", choices=["user", "products", "chats", "analytics", "settings"])

    def _reset(ns: argparse.Namespace) -> int:
        store = _open_store(ns)
        if ns.collection:
            store.reset_collection(ns.collection)
        else:
            store.clear_all()
        return 0

    reset.set_defaults(handler=_reset)

    compress = subparsers.add_parser("compress-image", help="Shrink a photo and print it as a data URL")
    compress.add_argument("path")
    compress.add_argument("--max-dimension", type=int, default=800)
    compress.add_argument("--quality", type=float, default=0.8)

    def _compress(ns: argparse.Namespace) -> int:
        print(_read_image(ns.path, ns.max_dimension, ns.quality))
        return 0

    compress.set_defaults(handler=_compress)


# ---------- advisor ----------
def _add_advise_cli(subparsers: argparse._SubParsersAction) -> None:
    advise = subparsers.add_parser("advise", help="AI-generated listings, tips and customer replies")
    sub = advise.add_subparsers(dest="advise_command", required=True)

    listing = sub.add_parser("listing", help="Generate an improved product listing")
    listing.add_argument("--title", required=True)
    listing.add_argument("--description", required=True)
    listing.add_argument("--price", required=True)
    listing.add_argument("--category", required=True)

    def _listing(ns: argparse.Namespace) -> int:
        result = AdvisoryClient().generate_product_listing(ns.title, ns.description, ns.price, ns.category)
        _print_json(asdict(result))
        return 0

    listing.set_defaults(handler=_listing)

    tips = sub.add_parser("tips", help="Business tips for your most common category")
    tips.add_argument("--category", help="Defaults to the most common category among your products")
    tips.add_argument("--goal", action="append", dest="goals", default=[])

    def _tips(ns: argparse.Namespace) -> int:
        category = ns.category
        if not category:
            products = _open_store(ns).get_products()
            if not products:
                LOG.error("No products found. Add some products first to get personalized business tips.")
                return 1
            category = most_common_category(products)
        result = AdvisoryClient().generate_business_tips(category, ns.goals)
        _print_json([asdict(t) for t in result])
        return 0

    tips.set_defaults(handler=_tips)

    replies = sub.add_parser("replies", help="Draft answers to common customer questions")
    replies.add_argument("--product-type", required=True)
    replies.add_argument("--question", action="append", dest="questions", default=[])

    def _replies(ns: argparse.Namespace) -> int:
        result = AdvisoryClient().generate_customer_replies(ns.product_type, ns.questions)
        _print_json([asdict(r) for r in result])
        return 0

    replies.set_defaults(handler=_replies)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="karigar",
        description="Manage artisan product listings, analytics and AI business advice.",
    )
    parser.add_argument("--db", help="Storage file (default: KARIGAR_DB_PATH or var/karigar/storage.sqlite3)")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_user_cli(subparsers)
    _add_products_cli(subparsers)
    _add_chat_cli(subparsers)
    _add_data_cli(subparsers)
    _add_advise_cli(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    args = build_parser().parse_args(provided)
    try:
        code = args.handler(args)
    except (KarigarError, OSError, ValueError) as exc:
        LOG.error(str(exc))
        code = 1
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
