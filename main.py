from __future__ import annotations

import argparse
import asyncio
import locale
from pathlib import Path
import sys

from loguru import logger

from app.viewmodels.library_vm import LibraryVM
from app.viewmodels.photo_vm import PhotoVM
from core.models import Section, SortBy
from core.services.interfaces import LibraryError
from infrastructure.csv_repository import CsvPhotoRepository
from infrastructure.logging import find_latest_log_file, init_logging
from infrastructure.settings import SettingsStore

BASE_DIR = Path(__file__).parent


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print the grouped library view of a catalog.")
    parser.add_argument("--catalog", required=True, help="CSV catalog of photos")
    parser.add_argument("--settings", default=str(BASE_DIR / "settings.json"))
    parser.add_argument("--query", default="", help="search text")
    parser.add_argument(
        "--section", default=Section.ALL.value, choices=[s.value for s in Section]
    )
    parser.add_argument("--source", default=None, help="source root for the source section")
    parser.add_argument(
        "--sort", default=SortBy.DATE_DESC.value, choices=[s.value for s in SortBy]
    )
    parser.add_argument("--year", type=int, default=None)
    parser.add_argument(
        "--month", type=int, default=None, choices=range(1, 13), help="1-12, needs --year"
    )
    parser.add_argument("--pages", type=int, default=1, help="pages to load")
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING"])
    return parser.parse_args(argv)


def _print_notification(title: str, message: str) -> None:
    print(f"[{title}] {message}", file=sys.stderr)


async def _run(args: argparse.Namespace) -> int:
    try:
        repo = CsvPhotoRepository.from_csv(args.catalog)
    except LibraryError as ex:
        _print_notification("Catalog", str(ex))
        return 1

    settings = SettingsStore(args.settings)
    vm = LibraryVM(repo, settings, notify=_print_notification)
    if not await vm.reload():
        return 1
    for _ in range(max(0, args.pages - 1)):
        if not vm.has_more:
            break
        await vm.load_more()

    vm.set_section(args.section)
    vm.set_active_source(args.source)
    vm.set_sort(args.sort)
    vm.set_search_query(args.query)
    vm.set_filters(selected_year=args.year, selected_month=args.month)

    for group in vm.grouped_photos:
        print(f"== {group.label} ({len(group.photos)})")
        for photo in group.photos:
            pvm = PhotoVM(photo)
            print(f"  {pvm.date_text}  {pvm.size_text:>9}  {pvm.folder_path}/{pvm.file_name}")
    print(
        f"{vm.filtered_count} shown, {vm.photo_count} cached, "
        f"{vm.total_photo_count} in library"
    )
    logger.info("Printed {} groups", len(vm.grouped_photos))
    return 0


def _init_collation() -> None:
    # Name sorting collates with locale.strxfrm, which follows LC_COLLATE
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as ex:
        logger.warning("Locale collation unavailable, sorting names by code point: {}", ex)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    log_path = init_logging(args.log_dir, args.log_level)
    _init_collation()
    status = asyncio.run(_run(args))
    logger.complete()
    log_file = find_latest_log_file(str(log_path))
    if log_file is not None:
        print(f"Log: {log_file}", file=sys.stderr)
    return status


if __name__ == "__main__":
    raise SystemExit(main())
