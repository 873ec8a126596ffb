import csv
from io import StringIO
from typing import List, Tuple

from tourney_wallet.errors import WalletApiError
from tourney_wallet.gateway import WalletGateway
from tourney_wallet.logging_config import get_logger
from tourney_wallet.schemas.wallet_schemas import Transaction

logger = get_logger(__name__)

EXPORT_COLUMNS = ["id", "type", "amount", "status", "balanceAfter", "description", "createdAt"]


async def collect_transactions(gateway: WalletGateway, type: str | None = None, limit: int = 100) -> List[Transaction]:
    """
    Walk every history page, newest first, and return all transactions.
    """
    items: List[Transaction] = []
    page = 1
    while True:
        result = await gateway.fetch_transaction_history(page=page, limit=limit, type=type)
        if not result.ok:
            raise WalletApiError(result.error.kind, result.error.message, cause=result.error.cause)
        items.extend(result.data.items)
        if page >= result.data.totalPages:
            break
        page += 1
    return items


async def generate_transactions_csv(gateway: WalletGateway, type: str | None = None, limit: int = 100) -> Tuple[str, int]:
    transactions = await collect_transactions(gateway, type=type, limit=limit)
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_COLUMNS)
    for tx in transactions:
        writer.writerow((
            tx.id,
            tx.type.value,
            tx.amount,
            tx.status.value,
            tx.balanceAfter,
            tx.description,
            tx.createdAt.isoformat(),
        ))
    logger.info("Exported %s transactions type=%s", len(transactions), type)
    return output.getvalue(), len(transactions)
