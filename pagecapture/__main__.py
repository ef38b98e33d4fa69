"""CLI entry point: python -m pagecapture URL [URL ...] [options]"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pagecapture import settings
from pagecapture.errors import FetchError
from pagecapture.extractors.urlnorm import url_to_slug
from pagecapture.items import FetchOptions, WebsiteContent
from pagecapture.query import fetch_multiple_urls, fetch_with_retry

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagecapture",
        description=(
            "Fetch web pages and extract sanitized markup, CSS, metadata and\n"
            "image/link/script inventories."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("urls", nargs="+", metavar="URL",
                        help="Page URL(s); https:// is assumed when no scheme is given")
    parser.add_argument("--retries", type=int, default=1, metavar="N",
                        help="Attempts per URL with exponential backoff (default: 1)")
    parser.add_argument("--timeout-ms", type=int, default=settings.TIMEOUT_MS, metavar="MS",
                        help=f"Request timeout in milliseconds (default: {settings.TIMEOUT_MS})")
    parser.add_argument("--user-agent", default=None, metavar="UA",
                        help="Override the default browser User-Agent")
    parser.add_argument("--no-follow-redirects", action="store_true", default=False,
                        help="Do not follow HTTP redirects")
    parser.add_argument("--max-redirects", type=int, default=settings.MAX_REDIRECTS, metavar="N",
                        help=f"Maximum redirects to follow (default: {settings.MAX_REDIRECTS})")
    parser.add_argument("--external-css", action="store_true", default=False,
                        help="Also fetch linked stylesheets and append them to the CSS")
    parser.add_argument("--out", default=None, metavar="DIR",
                        help="Write <slug>.json and <slug>.html for each captured page")
    parser.add_argument("--json", action="store_true", default=False,
                        help="Print the captured records as JSON on stdout")
    parser.add_argument("--enhance", action="store_true", default=False,
                        help=(
                            "Send each page to the AI enhancement service "
                            "(configured via PAGECAPTURE_AI_* variables); requires --out"
                        ))
    parser.add_argument("--log-level", default=settings.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help=f"Logging level (default: {settings.LOG_LEVEL})")
    return parser


def _capture_all(urls: list[str], options: FetchOptions, retries: int) -> list[WebsiteContent]:
    """Capture *urls*; with retries, failures are folded back into error records."""
    if retries <= 1:
        return fetch_multiple_urls(urls, options)
    pages: list[WebsiteContent] = []
    for url in urls:
        try:
            pages.append(fetch_with_retry(url, retries, options))
        except FetchError as exc:
            pages.append(WebsiteContent.failure(exc.url or url, str(exc)))
    return pages


def _write_outputs(pages: list[WebsiteContent], out_dir: Path, enhance: bool) -> None:
    from pagecapture.export import render_standalone_html, write_record, write_standalone

    client = None
    if enhance:
        from pagecapture.enhance import EnhancementClient, EnhancerConfig

        client = EnhancementClient(EnhancerConfig.from_env())

    seen: set[str] = set()
    for page in pages:
        if page.error:
            continue
        slug = url_to_slug(page.url)
        candidate, counter = slug, 2
        while candidate in seen:
            candidate = f"{slug}-{counter}"
            counter += 1
        seen.add(candidate)

        write_record(page, out_dir / f"{candidate}.json")
        write_standalone(page, out_dir / f"{candidate}.html")

        if client is not None:
            try:
                enhanced = client.enhance(page.enhancement_input())
            except FetchError as exc:
                logger.warning("enhancement failed for %s: %s", page.url, exc)
                continue
            target = out_dir / f"{candidate}.enhanced.html"
            if "<html" not in enhanced.lower():
                enhanced = render_standalone_html(enhanced, title=page.title)
            target.write_text(enhanced, encoding="utf-8")


def _print_summary(pages: list[WebsiteContent]) -> None:
    try:
        from rich import box
        from rich.console import Console
        from rich.table import Table

        console = Console(stderr=True)
        ok = [p for p in pages if not p.error]

        tbl = Table(
            title=f"[bold cyan]Captured {len(ok)}/{len(pages)} pages[/bold cyan]",
            box=box.SIMPLE_HEAVY,
            show_lines=False,
        )
        tbl.add_column("#",       style="dim",   justify="right", width=4, no_wrap=True)
        tbl.add_column("URL",     style="blue",  max_width=50,            no_wrap=True)
        tbl.add_column("Title",   style="cyan",  max_width=36,            no_wrap=True)
        tbl.add_column("Images",  justify="right", width=7,               no_wrap=True)
        tbl.add_column("Links",   justify="right", width=7,               no_wrap=True)
        tbl.add_column("Scripts", justify="right", width=8,               no_wrap=True)
        tbl.add_column("Status",  max_width=40,                           no_wrap=True)

        for i, p in enumerate(pages, 1):
            status = f"[red]{p.error[:40]}[/red]" if p.error else "[green]ok[/green]"
            tbl.add_row(
                str(i),
                p.url[:50],
                (p.title or "-")[:36],
                str(len(p.images)),
                str(len(p.links)),
                str(len(p.scripts)),
                status,
            )
        console.print(tbl)
    except Exception as exc:
        logger.debug("Rich summary display failed: %s", exc)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.INFO),
        format=settings.LOG_FORMAT,
        stream=sys.stderr,
    )

    if args.enhance and not args.out:
        print("ERROR: --enhance requires --out", file=sys.stderr)
        return 2

    try:
        options = FetchOptions(
            timeout_ms=args.timeout_ms,
            user_agent=args.user_agent,
            follow_redirects=not args.no_follow_redirects,
            max_redirects=args.max_redirects,
            include_external_css=args.external_css,
        )
    except ValueError as exc:
        print(f"ERROR: invalid options: {exc}", file=sys.stderr)
        return 2

    pages = _capture_all(args.urls, options, args.retries)

    if args.out:
        out_dir = Path(args.out).resolve()
        _write_outputs(pages, out_dir, enhance=args.enhance)
        logger.info("output written to %s", out_dir)

    if args.json:
        sys.stdout.write(
            json.dumps([p.model_dump() for p in pages], indent=2, ensure_ascii=False) + "\n",
        )

    _print_summary(pages)
    return 0 if all(not p.error for p in pages) else 1


if __name__ == "__main__":
    sys.exit(main())
