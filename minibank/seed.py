"""Load the market catalog from a JSON file.

    python -m minibank.seed assets.json

The file holds ``{"stocks": [...], "fixedIncome": [...]}`` using the
camelCase keys of the public API. Existing assets are updated in place.
"""

import argparse
import json
import logging
from datetime import date
from pathlib import Path

from .config import DATABASE_URL, LOG_LEVEL
from .db import init_db, make_engine
from .logs import configure_logging
from .market_service.pricing import MarketPricing

logger = logging.getLogger(__name__)


def seed_assets(pricing: MarketPricing, data: dict) -> int:
    count = 0
    for s in data.get("stocks", []):
        pricing.upsert_stock(s["symbol"], s["name"], s["sector"], s["currentPrice"],
                             s.get("dailyVariation", 0.0))
        count += 1
    for f in data.get("fixedIncome", []):
        pricing.upsert_fixed_income(f["id"], f["name"], f["type"], f["rate"], f["rateType"],
                                    date.fromisoformat(f["maturity"][:10]), f["minimumInvestment"])
        count += 1
    return count


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the market catalog")
    parser.add_argument("path", type=Path, help="JSON file with stocks and fixedIncome lists")
    parser.add_argument("--database-url", default=DATABASE_URL)
    args = parser.parse_args(argv)

    configure_logging(LOG_LEVEL)
    engine = make_engine(args.database_url)
    init_db(engine)
    data = json.loads(args.path.read_text(encoding="utf-8"))
    count = seed_assets(MarketPricing(engine), data)
    logger.info("seeded %d assets from %s", count, args.path)


if __name__ == "__main__":
    main()
