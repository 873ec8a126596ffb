import asyncio

import httpx

from tourney_wallet.config import DepositStep, OperationKey, TransactionStatus, WithdrawStep
from tourney_wallet.errors import ErrorKind
from tourney_wallet.flows import DepositFlow, WithdrawFlow


def _track_steps(flow, gateway):
    """Record the flow step whenever a deposit order is requested."""
    seen = []
    original = gateway.create_deposit_order

    async def wrapped(amount):
        seen.append((flow.step, amount))
        return await original(amount)

    gateway.create_deposit_order = wrapped
    return seen


def test_deposit_quick_amount_end_to_end(make_gateway):
    async def scenario():
        gateway = make_gateway()
        flow = DepositFlow(gateway)
        seen = _track_steps(flow, gateway)
        flow.open()
        flow.select_quick_amount(500)
        result = await flow.submit()
        await gateway.aclose()
        return flow, seen, result

    flow, seen, result = asyncio.run(scenario())
    assert result.ok
    assert seen == [(DepositStep.PROCESSING, 500.0)]
    assert flow.step == DepositStep.SUCCESS
    assert flow.success_message == "₹500 has been added to your wallet successfully."
    assert flow.gateway.store.current_order is not None


def test_deposit_validation_blocks_network(make_fake_gateway):
    calls = []
    gateway = make_fake_gateway(lambda request: calls.append(request) or httpx.Response(500))
    flow = DepositFlow(gateway)
    flow.open()

    for amount in ("5", "50001", "nan", ""):
        flow.set_custom_amount(amount)
        result = asyncio.run(flow.submit())
        assert result.error.kind == ErrorKind.VALIDATION
        assert flow.step == DepositStep.AMOUNT

    assert flow.validation_error == "Minimum deposit amount is ₹10"
    assert calls == []

    flow.set_custom_amount("60000")
    asyncio.run(flow.submit())
    assert flow.validation_error == "Maximum deposit amount is ₹50,000"
    assert calls == []


def test_deposit_order_failure_returns_to_amount(make_fake_gateway):
    gateway = make_fake_gateway(
        lambda request: httpx.Response(
            500, json={"success": False, "message": "Payment gateway not configured. Please contact administrator."}
        )
    )
    flow = DepositFlow(gateway)
    flow.open()
    flow.select_quick_amount(1000)

    result = asyncio.run(flow.submit())
    assert not result.ok
    assert flow.step == DepositStep.AMOUNT
    assert flow.error == "Payment gateway not configured. Please contact administrator."
    assert flow.can_submit


def test_deposit_with_checkout_waits_for_verification(make_gateway):
    async def checkout(order):
        assert flow.step == DepositStep.PROCESSING
        return {
            "razorpay_order_id": order.orderId,
            "razorpay_payment_id": "pay_abc",
            "razorpay_signature": "sig",
        }

    async def scenario():
        gateway = make_gateway()
        nonlocal flow
        flow = DepositFlow(gateway, checkout=checkout)
        flow.open()
        flow.set_custom_amount("2000")
        result = await flow.submit()
        await gateway.aclose()
        return result

    flow = None
    result = asyncio.run(scenario())
    assert result.ok
    assert flow.step == DepositStep.SUCCESS
    assert flow.success_message == "₹2,000 has been added to your wallet successfully."
    assert flow.gateway.store.current_order is None
    assert flow.gateway.store.balance == 2000


def test_abandoned_checkout_marks_order_failed(make_gateway):
    async def checkout(order):
        return None

    async def scenario():
        gateway = make_gateway()
        flow = DepositFlow(gateway, checkout=checkout)
        flow.open()
        flow.select_quick_amount(100)
        result = await flow.submit()
        await gateway.fetch_transaction_history(page=1)
        await gateway.aclose()
        return flow, result

    flow, result = asyncio.run(scenario())
    assert result.cancelled
    assert flow.step == DepositStep.AMOUNT
    assert flow.gateway.store.current_order is None
    [tx] = flow.gateway.store.transactions
    assert tx.status == TransactionStatus.FAILED
    assert flow.gateway.store.balance == 0


def test_failed_verification_clears_order_and_reports_it(make_gateway):
    async def checkout(order):
        return {"razorpay_order_id": "order_unknown", "razorpay_payment_id": "pay_1", "razorpay_signature": "s"}

    async def scenario():
        gateway = make_gateway()
        flow = DepositFlow(gateway, checkout=checkout)
        flow.open()
        flow.select_quick_amount(500)
        result = await flow.submit()
        await gateway.fetch_transaction_history(page=1)
        await gateway.aclose()
        return flow, result

    flow, result = asyncio.run(scenario())
    assert not result.ok
    assert result.error.kind == ErrorKind.SERVER_REJECTION
    assert flow.step == DepositStep.AMOUNT
    assert flow.error == "Payment verification failed: Transaction not found"
    assert flow.gateway.store.current_order is None
    # the pending deposit was marked failed on the server
    [tx] = flow.gateway.store.transactions
    assert tx.status == TransactionStatus.FAILED
    assert flow.gateway.store.balance == 0


def test_reopening_deposit_resets_flow(make_gateway):
    async def scenario():
        gateway = make_gateway()
        flow = DepositFlow(gateway)
        flow.open()
        flow.select_quick_amount(500)
        await flow.submit()
        await flow.close()
        flow.open()
        await gateway.aclose()
        return flow

    flow = asyncio.run(scenario())
    assert flow.step == DepositStep.AMOUNT
    assert flow.amount == ""
    assert flow.selected_amount is None
    assert flow.gateway.store.current_order is None
    assert flow.gateway.store.status(OperationKey.DEPOSIT).error is None
    # closing after success refreshed the wallet
    assert flow.gateway.store.wallet is not None


def _fill(flow, **overrides):
    values = {
        "accountNumber": "123456789012",
        "confirmAccountNumber": "123456789012",
        "ifscCode": "hdfc0004321",
        "accountHolderName": "Meera Iyer",
        "bankName": "HDFC Bank",
    }
    values.update(overrides)
    for field, value in values.items():
        flow.set_field(field, value)


def test_withdraw_invalid_form_never_reaches_network(make_fake_gateway):
    calls = []
    gateway = make_fake_gateway(lambda request: calls.append(request) or httpx.Response(500))
    flow = WithdrawFlow(gateway)
    flow.open(available_balance=1000)
    flow.set_amount("50")
    _fill(flow, accountNumber="12345678", confirmAccountNumber="1234", ifscCode="SBIN1001234", accountHolderName="M", bankName="")

    result = asyncio.run(flow.submit())
    assert result.error.kind == ErrorKind.VALIDATION
    assert set(flow.errors) == {
        "amount",
        "accountNumber",
        "confirmAccountNumber",
        "ifscCode",
        "accountHolderName",
        "bankName",
    }
    assert flow.step == WithdrawStep.FORM
    assert calls == []

    flow.set_field("bankName", "HDFC Bank")
    assert "bankName" not in flow.errors
    assert "ifscCode" in flow.errors


def test_withdraw_amount_capped_by_balance(make_fake_gateway):
    flow = WithdrawFlow(make_fake_gateway(lambda request: httpx.Response(500)))
    flow.open(available_balance=500)
    flow.set_amount("600")
    _fill(flow)
    assert flow.validate() == {"amount": "Amount exceeds available balance"}


def test_withdraw_success_keeps_transaction_visible(make_gateway, seed):
    seed(1000, type="prize_win")

    async def scenario():
        gateway = make_gateway()
        await gateway.fetch_wallet_details()
        flow = WithdrawFlow(gateway)
        flow.open()
        flow.set_amount("200")
        _fill(flow)
        result = await flow.submit()
        await gateway.aclose()
        return flow, result

    flow, result = asyncio.run(scenario())
    assert result.ok
    assert flow.available_balance == 1000
    assert flow.bank_details["ifscCode"] == "HDFC0004321"
    assert flow.step == WithdrawStep.SUCCESS
    assert flow.is_open
    assert flow.submitted.amount == -200
    assert flow.gateway.store.transactions[0].id == flow.submitted.id
    assert flow.gateway.store.balance == 1000


def test_withdraw_server_rejection_stays_on_form(make_fake_gateway):
    gateway = make_fake_gateway(
        lambda request: httpx.Response(
            400, json={"success": False, "message": "Failed to create withdrawal request: Insufficient balance"}
        )
    )
    flow = WithdrawFlow(gateway)
    flow.open(available_balance=5000)
    flow.set_amount("300")
    _fill(flow)

    result = asyncio.run(flow.submit())
    assert not result.ok
    assert flow.step == WithdrawStep.FORM
    assert flow.error == "Failed to create withdrawal request: Insufficient balance"
    assert flow.errors == {}
