#!/usr/bin/env python3
"""
CLI script to convert HTML files into raw rich documents.

Each file is decoded with its declared charset, parsed, converted, and
written out in the raw JSON layout ({"blocks": [...], "entityMap": {...}}).

Environment (a .env file is honoured):
  HTML_BLOCKS_LOG_LEVEL  logging level name, default INFO
  HTML_BLOCKS_PARSER     first BeautifulSoup parser to try, default html5lib
"""

import argparse
import json
import os
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from html_blocks.exceptions import HTMLBlocksError
from html_blocks.main import HTMLImporter


def load_options(path: str) -> dict:
    """Read converter options (elementStyles, customStyleMap) from a JSON file."""
    return json.loads(Path(path).read_text(encoding="utf-8"))


def main():
    parser = argparse.ArgumentParser(description="Convert HTML files to rich document JSON")
    parser.add_argument("files", nargs="+", help="HTML files to process")
    parser.add_argument("--output", "-o", help="Output JSON file")
    parser.add_argument("--options", help="JSON file with elementStyles / customStyleMap")
    args = parser.parse_args()

    try:
        options = load_options(args.options) if args.options else None
        importer = HTMLImporter(
            options=options,
            parser=os.getenv("HTML_BLOCKS_PARSER", "html5lib"),
            log_level=os.getenv("HTML_BLOCKS_LOG_LEVEL", "INFO"),
        )
    except HTMLBlocksError as e:
        print(json.dumps(e.to_response(), indent=2))
        raise SystemExit(2)
    except (OSError, json.JSONDecodeError) as e:
        print(f"✗ Could not read options: {e}")
        raise SystemExit(2)

    results = []

    for filepath in args.files:
        path = Path(filepath)
        print(f"Converting: {path.name}")

        try:
            content_state = importer.convert_file(path)
            results.append({
                "file": path.name,
                "status": "success",
                "content": content_state.to_raw()
            })
            print(f"  ✓ {len(content_state.blocks)} blocks, "
                  f"{len(content_state.entity_map)} entities")

        except (HTMLBlocksError, OSError) as e:
            results.append({
                "file": path.name,
                "status": "error",
                "error": str(e)
            })
            print(f"  ✗ Error: {e}")

    # ensure_ascii=False keeps non-ASCII text readable in the JSON
    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"\nSaved to: {args.output}")
    else:
        print("\n" + output)


if __name__ == "__main__":
    main()
