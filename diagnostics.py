"""
Diagnostic: run the parser + extractors over saved product pages (no network).
Reports image counts and which metadata fields are filled vs missing per file,
for tuning selectors and vocabularies against captured vendor pages.

    python diagnostics.py [DATA_DIR]
"""

import sys
from pathlib import Path

from errors import BotProtectionDetected
from extractor import METADATA_FIELDS, extract_images, extract_metadata
from fetcher import detect_bot_protection
from parser import parse_html

DATA_DIR = Path(__file__).parent / "data"

# Saved pages don't remember where they came from; relative links resolve here
# unless the page declares a canonical URL.
FALLBACK_PAGE_URL = "https://saved-page.invalid/"


def _canonical_url(html_page) -> str | None:
    og_url = html_page.meta("og:url")
    if og_url and og_url.startswith("http"):
        return og_url
    link = html_page.soup.find("link", attrs={"rel": "canonical"})
    href = link.get("href") if link else None
    if isinstance(href, str) and href.startswith("http"):
        return href
    return None


def diagnose_file(filepath: Path) -> dict:
    html = filepath.read_text(encoding="utf-8")
    parsed = parse_html(html, FALLBACK_PAGE_URL)
    parsed.url = _canonical_url(parsed) or FALLBACK_PAGE_URL

    try:
        detect_bot_protection(html)
        bot_wall = False
    except BotProtectionDetected:
        bot_wall = True

    images = extract_images(parsed)
    metadata = extract_metadata(parsed).model_dump()

    report = {
        "file": filepath.name,
        "page_url": parsed.url,
        "bot_wall": bot_wall,
        "parser": {
            "json_ld_blocks": len(parsed.json_ld),
            "meta_tags": len(parsed.meta_tags),
            "img_tags": len(parsed.soup.find_all("img")),
        },
        "images": images,
        "fields": {},
        "filled": [],
        "missing": [],
    }

    for field in METADATA_FIELDS:
        val = metadata.get(field)
        if val:
            report["filled"].append(field)
            val = str(val)
            report["fields"][field] = val[:150] + ("..." if len(val) > 150 else "")
        else:
            report["missing"].append(field)
            report["fields"][field] = None

    return report


def main(data_dir: Path = DATA_DIR) -> None:
    html_files = sorted(data_dir.glob("*.html"))
    print(f"Diagnosing {len(html_files)} files (parser + extractors only, NO network)\n")

    all_reports = []
    for filepath in html_files:
        report = diagnose_file(filepath)
        all_reports.append(report)

        print(f"{'=' * 70}")
        print(f"  {report['file']}  ({report['page_url']})")
        print(f"{'=' * 70}")

        p = report["parser"]
        print(f"  Parser: {p['json_ld_blocks']} JSON-LD | {p['meta_tags']} meta keys | {p['img_tags']} <img> tags")
        if report["bot_wall"]:
            print("  WARNING: page looks like a bot-protection wall")

        print(f"\n  Images ({len(report['images'])}):")
        for url in report["images"]:
            print(f"    {url}")

        print(f"\n  Filled ({len(report['filled'])}/{len(METADATA_FIELDS)}):")
        for field in report["filled"]:
            print(f"    {field}: {report['fields'][field]}")

        if report["missing"]:
            print(f"\n  MISSING ({len(report['missing'])}): {report['missing']}")
        else:
            print("\n  All fields filled!")

        print()

    # Summary table
    print(f"\n{'=' * 70}")
    print("SUMMARY: Field coverage across all files")
    print(f"{'=' * 70}")
    print(f"{'Field':<20} ", end="")
    for r in all_reports:
        print(f"{r['file'][:12]:<14}", end="")
    print()
    print("-" * 90)

    for field in ["images"] + METADATA_FIELDS:
        print(f"{field:<20} ", end="")
        for r in all_reports:
            ok = bool(r["images"]) if field == "images" else field in r["filled"]
            print(f"{'OK' if ok else 'MISSING':<14}", end="")
        print()


if __name__ == "__main__":
    main(Path(sys.argv[1]) if len(sys.argv) > 1 else DATA_DIR)
