"""Enrich an outfit JSON file locally and print the enriched document."""

import argparse
import asyncio
import json
from pathlib import Path

from outfit_app.app import OutfitDiscoveryApp


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("outfit", type=Path, help="Path to the generated outfit JSON")
    parser.add_argument("--query", help="User query used as the cache key")
    parser.add_argument("--celebrity", help="Celebrity name for style alternatives")
    args = parser.parse_args()

    app = OutfitDiscoveryApp()
    document = asyncio.run(
        app.enrich_outfit(args.outfit.read_text(), query=args.query, celebrity_name=args.celebrity)
    )
    print(json.dumps(document.to_dict(), indent=2))


if __name__ == "__main__":
    main()
