import argparse
import asyncio
from pathlib import Path

from tourney_wallet.errors import WalletApiError
from tourney_wallet.export import generate_transactions_csv
from tourney_wallet.gateway import WalletGateway
from tourney_wallet.logging_config import get_logger
from tourney_wallet.store import WalletStore

logger = get_logger(__name__)


async def export_transactions(output_path: str = "transactions.csv", type: str | None = None) -> int:
    # a private store keeps the export out of the session's wallet view
    gateway = WalletGateway(store=WalletStore())
    try:
        csv_text, count = await generate_transactions_csv(gateway, type=type)
    except WalletApiError as exc:
        logger.error("Transaction export failed kind=%s message=%s", exc.kind.value, exc.message)
        return 1
    finally:
        await gateway.aclose()
    Path(output_path).write_text(csv_text, encoding="utf-8", newline="")
    logger.info("Wrote %s transactions to %s", count, output_path)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export wallet transaction history to CSV")
    parser.add_argument("--output", default="transactions.csv")
    parser.add_argument("--type", default=None, help="only export one transaction type")
    args = parser.parse_args(argv)
    return asyncio.run(export_transactions(args.output, args.type))


if __name__ == "__main__":
    raise SystemExit(main())
