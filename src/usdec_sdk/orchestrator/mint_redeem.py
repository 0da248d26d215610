"""USDEC Mint/Redeem Orchestrator.

Sequences the on-chain calls for converting USDC into USDEC and back:

Mint:   Idle -> AwaitingApprovalSignature -> ApprovalPending -> ApprovalConfirmed
             -> AwaitingMintSignature -> MintPending -> MintConfirmed
        (the approval leg is skipped when the allowance already covers the amount)
Redeem: Idle -> AwaitingRedeemSignature -> RedeemPending -> RedeemConfirmed

Any post-submission failure ends in Failed. Simulation failures and wallet
rejections return the flow to Idle. Nothing is ever resubmitted automatically;
calling ``mint()`` or ``redeem()`` again is the explicit retry.
"""

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from ..chain.client import ChainClient, WalletSession
from ..chain.errors import ChainClientError, SignatureRejectedError
from ..config import MintConfig, ResolvedMintConfig, resolve_config
from ..mint.allowance import AllowanceResolver
from ..mint.amounts import AmountResult, InvalidAmount, validate_amount
from ..mint.eligibility import Allowlist, MintAssessment, assess_mint
from ..mint.types import (
    AllowanceState,
    Err,
    ErrorKind,
    IN_FLIGHT_PHASES,
    INELIGIBILITY_MESSAGES,
    IneligibilityReason,
    Ok,
    StepResult,
    TransactionRecord,
    TxKind,
    TxPhase,
)
from ..mint.utils import explorer_tx_url
from ..notifier import LoggingNotifier, Notifier, NotifyKind
from .balances import BalanceReader
from .history import TransactionHistory
from .policies import RedeemContext, RedeemPolicy, unrestricted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Step:
    """One submit-and-confirm leg of a flow."""

    kind: TxKind
    method: str
    awaiting: TxPhase
    pending: TxPhase
    confirmed: TxPhase
    label: str
    sent_message: str
    confirmed_message: str


APPROVE_STEP = _Step(
    kind=TxKind.APPROVE,
    method="approve",
    awaiting=TxPhase.AWAITING_APPROVAL_SIGNATURE,
    pending=TxPhase.APPROVAL_PENDING,
    confirmed=TxPhase.APPROVAL_CONFIRMED,
    label="Approve",
    sent_message="Approval sent!",
    confirmed_message="Approval confirmed!",
)

MINT_STEP = _Step(
    kind=TxKind.MINT,
    method="mint",
    awaiting=TxPhase.AWAITING_MINT_SIGNATURE,
    pending=TxPhase.MINT_PENDING,
    confirmed=TxPhase.MINT_CONFIRMED,
    label="Mint",
    sent_message="Mint tx sent!",
    confirmed_message="Mint confirmed!",
)

REDEEM_STEP = _Step(
    kind=TxKind.REDEEM,
    method="redeem",
    awaiting=TxPhase.AWAITING_REDEEM_SIGNATURE,
    pending=TxPhase.REDEEM_PENDING,
    confirmed=TxPhase.REDEEM_CONFIRMED,
    label="Redeem",
    sent_message="Redeem sent!",
    confirmed_message="Redeem confirmed!",
)


class _Flow:
    """Mutable state of the mint or the redeem flow."""

    def __init__(self, name: str, amount: AmountResult):
        self.name = name
        self.phase = TxPhase.IDLE
        self.phase_since = 0.0
        self.raw_amount = ""
        self.amount = amount
        self.error: Optional[Err] = None
        self.record: Optional[TransactionRecord] = None
        self.approved_amount: Optional[int] = None
        # Bumped on every local reset; stale coroutines stop touching the phase
        self.epoch = 0
        # Epoch of the running flow; a reset releases it even if a watch lingers
        self.busy_epoch: Optional[int] = None

    @property
    def busy(self) -> bool:
        return self.busy_epoch == self.epoch


class MintRedeemOrchestrator:
    """Per-session transaction orchestrator for USDEC.

    All transitions go through one instance. Mint and redeem are independent
    flows and may interleave; each refuses to start while it is already running.

    Example:
        ```python
        orchestrator = MintRedeemOrchestrator(
            client=JsonRpcChainClient(rpc_url, signer=signer),
            session=StaticWalletSession(address=signer.address, chain_id=8453),
            allowlist=Allowlist.from_file("allowlist.json"),
            config={
                "usdec_address": "0x...",
                "usdc_address": "0x...",
            },
        )

        orchestrator.set_mint_amount("25")
        result = await orchestrator.mint()
        if isinstance(result, Ok):
            print(orchestrator.last_tx_url)
        ```
    """

    def __init__(
        self,
        client: ChainClient,
        session: WalletSession,
        allowlist: Allowlist,
        config: Union[MintConfig, ResolvedMintConfig, None] = None,
        notifier: Optional[Notifier] = None,
        redeem_policy: RedeemPolicy = unrestricted,
        balances: Optional[BalanceReader] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            client: Chain client for reads, writes and receipts
            session: Live wallet session, sampled at every decision point
            allowlist: Addresses permitted to mint
            config: MintConfig overrides or an already resolved config
            notifier: Where success/error messages go (default: logging)
            redeem_policy: Rule deciding whether a redeem is permitted
            balances: Optional balance reader refreshed after confirmations
            clock: Time source (Unix seconds)
        """
        if not isinstance(config, ResolvedMintConfig):
            config = resolve_config(config)
        self._config = config
        self._client = client
        self._session = session
        self._allowlist = allowlist
        self._notifier = notifier or LoggingNotifier()
        self._redeem_policy = redeem_policy
        self._balances = balances
        self._clock = clock

        self._allowance = AllowanceResolver(
            client, token=config.usdc_address, spender=config.usdec_address
        )
        self.history = TransactionHistory(config.history_limit)
        self._last_mint_confirmed_at: Optional[float] = None

        self._mint = _Flow("mint", self._validate_mint_amount(""))
        self._redeem = _Flow("redeem", self._validate_redeem_amount(""))

    # State exposed to callers

    @property
    def config(self) -> ResolvedMintConfig:
        return self._config

    @property
    def mint_phase(self) -> TxPhase:
        return self._mint.phase

    @property
    def redeem_phase(self) -> TxPhase:
        return self._redeem.phase

    @property
    def mint_error(self) -> Optional[Err]:
        """Error of the last mint attempt, cleared on reset."""
        return self._mint.error

    @property
    def redeem_error(self) -> Optional[Err]:
        return self._redeem.error

    @property
    def mint_amount(self) -> AmountResult:
        return self._mint.amount

    @property
    def redeem_amount(self) -> AmountResult:
        return self._redeem.amount

    @property
    def mint_record(self) -> Optional[TransactionRecord]:
        """Transaction bound to the current mint flow (approval or mint)."""
        return self._mint.record

    @property
    def redeem_record(self) -> Optional[TransactionRecord]:
        return self._redeem.record

    @property
    def allowance(self) -> Optional[AllowanceState]:
        """Allowance for the current owner and amount, or None while unknown."""
        owner = self._session.address
        amount = self._mint.amount
        if owner is None or isinstance(amount, InvalidAmount):
            return None
        return self._allowance.current_state(owner, amount)

    @property
    def last_tx_hash(self) -> Optional[str]:
        record = self.history.latest()
        return record.hash if record else None

    @property
    def last_tx_url(self) -> Optional[str]:
        tx_hash = self.last_tx_hash
        if tx_hash is None:
            return None
        return explorer_tx_url(tx_hash, self._config.explorer_url)

    def recent_transactions(self) -> List[TransactionRecord]:
        return self.history.recent()

    # Amount input

    def set_mint_amount(self, raw: str) -> StepResult:
        """Update the mint amount input.

        Resets the mint flow to Idle unless a transaction is being signed or
        is pending; an in-flight transaction keeps the amount it was
        submitted with.

        Returns:
            Ok(MintAssessment) or Err(INPUT)
        """
        flow = self._mint
        flow.raw_amount = raw
        flow.amount = self._validate_mint_amount(raw)
        if flow.phase not in IN_FLIGHT_PHASES:
            self._reset(flow)

        assessment = self.assess_mint()
        if self._balances is not None:
            self._balances.set_preview_assets(
                assessment.breakdown.net if assessment else None
            )

        if isinstance(flow.amount, InvalidAmount):
            return Err(ErrorKind.INPUT, flow.amount.message)
        return Ok(assessment)

    def set_redeem_amount(self, raw: str) -> StepResult:
        """Update the redeem amount input (same reset rules as minting)."""
        flow = self._redeem
        flow.raw_amount = raw
        flow.amount = self._validate_redeem_amount(raw)
        if flow.phase not in IN_FLIGHT_PHASES:
            self._reset(flow)

        if isinstance(flow.amount, InvalidAmount):
            return Err(ErrorKind.INPUT, flow.amount.message)
        return Ok(flow.amount)

    def assess_mint(self) -> Optional[MintAssessment]:
        """Fee breakdown and eligibility gate for the typed amount.

        Returned whenever the input parses, even if it is out of range or the
        gate is closed, so the numbers can be shown next to the reason.
        """
        gross = validate_amount(self._mint.raw_amount, decimals=self._config.decimals)
        if isinstance(gross, InvalidAmount):
            return None
        return self._assess(gross)

    # Flows

    async def mint(self) -> StepResult:
        """Run the mint flow for the current amount.

        Approves exactly the gross amount first when the allowance is short,
        waits for the approval to confirm, then mints. With
        ``auto_mint_after_approval`` disabled the call returns after the
        approval and a second call performs the mint.

        Returns:
            Ok(TransactionRecord) of the last confirmed transaction, or Err
        """
        flow = self._mint
        if flow.busy:
            return Err(ErrorKind.NOT_READY, "A mint is already in progress.")
        if flow.phase in (TxPhase.FAILED, TxPhase.MINT_CONFIRMED):
            self._reset(flow)
        flow.error = None

        gross = flow.amount
        if isinstance(gross, InvalidAmount):
            return self._refuse(flow, Err(ErrorKind.INPUT, gross.message))

        return await self._run_exclusive(flow, self._run_mint(flow, gross))

    async def redeem(self) -> StepResult:
        """Run the redeem flow for the current redeem amount.

        Returns:
            Ok(TransactionRecord) or Err
        """
        flow = self._redeem
        if flow.busy:
            return Err(ErrorKind.NOT_READY, "A redeem is already in progress.")
        if flow.phase in (TxPhase.FAILED, TxPhase.REDEEM_CONFIRMED):
            self._reset(flow)
        flow.error = None

        amount = flow.amount
        if isinstance(amount, InvalidAmount):
            return self._refuse(flow, Err(ErrorKind.INPUT, amount.message))
        if amount == 0:
            return self._refuse(
                flow, Err(ErrorKind.INPUT, "Enter an amount greater than zero.")
            )

        return await self._run_exclusive(flow, self._run_redeem(flow, amount))

    def reset_mint(self) -> StepResult:
        """Reset the mint status view. Does not cancel anything on-chain."""
        return self._reset_view(self._mint)

    def reset_redeem(self) -> StepResult:
        """Reset the redeem status view. Does not cancel anything on-chain."""
        return self._reset_view(self._redeem)

    # Internals

    async def _run_exclusive(self, flow: _Flow, run: Awaitable[StepResult]) -> StepResult:
        started = flow.epoch
        flow.busy_epoch = started
        try:
            return await run
        finally:
            if flow.busy_epoch == started:
                flow.busy_epoch = None

    async def _run_mint(self, flow: _Flow, gross: int) -> StepResult:
        epoch = flow.epoch
        owner = self._session.address

        assessment = self._assess(gross)
        refused = self._gate_error(assessment)
        if refused is not None:
            return self._refuse(flow, refused)

        refused = await self._check_preview(assessment.breakdown.net)
        if refused is not None:
            return self._refuse(flow, refused)

        if flow.phase == TxPhase.APPROVAL_CONFIRMED and flow.approved_amount == gross:
            needs_approval = False
        else:
            state = await self._allowance.resolve(owner, gross)
            if state is None:
                return self._refuse(
                    flow,
                    Err(ErrorKind.NOT_READY, "Allowance not loaded yet; try again."),
                )
            needs_approval = state.needs_approval

        if needs_approval:
            result = await self._submit(
                flow,
                epoch,
                APPROVE_STEP,
                contract=self._config.usdc_address,
                args=[self._config.usdec_address, gross],
                amount=gross,
                owner=owner,
            )
            if isinstance(result, Err) or flow.epoch != epoch:
                return result
            flow.approved_amount = gross
            self._allowance.invalidate()
            if not self._config.auto_mint_after_approval:
                return result

            # The approval covers the amount it was sent with, not a later edit
            if flow.amount != gross:
                self._reset(flow)
                return self._refuse(
                    flow,
                    Err(
                        ErrorKind.NOT_READY,
                        "Amount changed during approval; start the mint again.",
                    ),
                )

            # The wallet may have switched network while the approval confirmed
            refused = self._gate_error(self._assess(gross))
            if refused is not None:
                return self._refuse(flow, refused)

        result = await self._submit(
            flow,
            epoch,
            MINT_STEP,
            contract=self._config.usdec_address,
            args=[gross],
            amount=gross,
            owner=owner,
        )
        if isinstance(result, Ok):
            if flow.epoch == epoch:
                flow.approved_amount = None
            self._allowance.invalidate()
            self._last_mint_confirmed_at = self._clock()
            await self._refresh_balances()
        return result

    async def _run_redeem(self, flow: _Flow, amount: int) -> StepResult:
        epoch = flow.epoch
        owner = self._session.address

        refused = self._session_error(owner)
        if refused is not None:
            return self._refuse(flow, refused)

        reason = self._redeem_policy(
            RedeemContext(
                owner=owner,
                amount=amount,
                now=self._clock(),
                last_mint_confirmed_at=self._last_mint_confirmed_at,
            )
        )
        if reason is not None:
            return self._refuse(
                flow,
                Err(ErrorKind.INELIGIBLE, reason, reason=IneligibilityReason.REDEEM_POLICY),
            )

        result = await self._submit(
            flow,
            epoch,
            REDEEM_STEP,
            contract=self._config.usdec_address,
            args=[amount],
            amount=amount,
            owner=owner,
        )
        if isinstance(result, Ok):
            await self._refresh_balances()
        return result

    async def _submit(
        self,
        flow: _Flow,
        epoch: int,
        step: _Step,
        contract: str,
        args: Sequence,
        amount: int,
        owner: Optional[str],
    ) -> StepResult:
        # Wallet state is re-read right before every signature request
        refused = self._session_error(owner)
        if refused is not None:
            return self._refuse(flow, refused)

        self._set_phase(flow, epoch, step.awaiting)
        try:
            tx = await self._client.write(
                contract, step.method, args, simulate=self._config.simulate_writes
            )
        except SignatureRejectedError as exc:
            self._set_phase(flow, epoch, TxPhase.IDLE)
            self._notify("info", f"{step.label} cancelled in wallet.")
            return self._record_error(
                flow, epoch, Err(ErrorKind.SIGNATURE_REJECTED, str(exc))
            )
        except ChainClientError as exc:
            self._set_phase(flow, epoch, TxPhase.IDLE)
            self._notify("error", f"{step.label} failed: {exc}")
            return self._record_error(flow, epoch, Err(ErrorKind.SIMULATION, str(exc)))

        record = TransactionRecord(
            hash=tx.hash,
            kind=step.kind,
            amount=amount,
            submitted_at=self._clock(),
        )
        self.history.add(record)
        if flow.epoch == epoch:
            flow.record = record
        self._set_phase(flow, epoch, step.pending)
        logger.info("%s submitted: %s (amount=%s)", step.label, record.hash, amount)
        self._notify("success", step.sent_message)

        return await self._watch(flow, epoch, step, record)

    async def _watch(
        self, flow: _Flow, epoch: int, step: _Step, record: TransactionRecord
    ) -> StepResult:
        try:
            receipt = await self._client.wait_for_receipt(record.hash)
        except ChainClientError as exc:
            return self._fail(flow, epoch, step, record, str(exc))

        record.block_number = receipt.block_number
        if receipt.status != 1:
            return self._fail(
                flow,
                epoch,
                step,
                record,
                f"Transaction reverted in block {receipt.block_number}",
            )

        record.status = "confirmed"
        self._set_phase(flow, epoch, step.confirmed)
        logger.info(
            "%s confirmed: %s in block %s", step.label, record.hash, receipt.block_number
        )
        self._notify("success", step.confirmed_message)
        return Ok(record)

    def _fail(
        self,
        flow: _Flow,
        epoch: int,
        step: _Step,
        record: TransactionRecord,
        detail: str,
    ) -> Err:
        record.status = "failed"
        self._set_phase(flow, epoch, TxPhase.FAILED)
        logger.warning("%s failed: %s (%s)", step.label, record.hash, detail)
        self._notify("error", f"{step.label} failed: {detail} ({record.hash})")
        return self._record_error(
            flow,
            epoch,
            Err(ErrorKind.TRANSACTION_FAILED, detail, tx_hash=record.hash),
        )

    def _assess(self, gross: int) -> MintAssessment:
        return assess_mint(
            gross,
            fee_bps=self._config.fee_bps,
            min_gross=self._config.min_units,
            max_gross=self._config.max_units,
            vault_minimum=self._config.vault_minimum_units,
            address=self._session.address,
            chain_id=self._session.chain_id,
            expected_chain_id=self._config.chain_id,
            allowlist=self._allowlist,
        )

    def _gate_error(self, assessment: MintAssessment) -> Optional[Err]:
        reason = assessment.gate.first_failure()
        if reason is None:
            return None
        return self._ineligible(reason)

    def _session_error(self, owner: Optional[str]) -> Optional[Err]:
        address = self._session.address
        if address is None or owner is None:
            return self._ineligible(IneligibilityReason.WALLET_NOT_CONNECTED)
        if address.lower() != owner.lower():
            return Err(ErrorKind.NOT_READY, "Connected wallet changed; start again.")
        if self._session.chain_id != self._config.chain_id:
            return self._ineligible(IneligibilityReason.WRONG_CHAIN)
        return None

    async def _check_preview(self, net: int) -> Optional[Err]:
        if self._config.vault_address is None:
            return None
        try:
            shares = await self._client.read(
                self._config.vault_address, "previewDeposit", [net]
            )
        except ChainClientError as exc:
            logger.warning("Vault preview failed: %s", exc)
            return self._ineligible(IneligibilityReason.PREVIEW_UNAVAILABLE)
        if int(shares) <= 0:
            return self._ineligible(IneligibilityReason.ZERO_PREVIEW_SHARES)
        return None

    @staticmethod
    def _ineligible(reason: IneligibilityReason) -> Err:
        return Err(ErrorKind.INELIGIBLE, INELIGIBILITY_MESSAGES[reason], reason=reason)

    def _validate_mint_amount(self, raw: str) -> AmountResult:
        return validate_amount(
            raw,
            min_amount=self._config.min_input,
            max_amount=self._config.max_input,
            decimals=self._config.decimals,
        )

    def _validate_redeem_amount(self, raw: str) -> AmountResult:
        return validate_amount(raw, decimals=self._config.decimals)

    def _refuse(self, flow: _Flow, err: Err) -> Err:
        logger.warning("%s refused: %s", flow.name.capitalize(), err.detail)
        flow.error = err
        return err

    def _record_error(self, flow: _Flow, epoch: int, err: Err) -> Err:
        if flow.epoch == epoch:
            flow.error = err
        return err

    def _set_phase(self, flow: _Flow, epoch: int, phase: TxPhase) -> None:
        if flow.epoch != epoch:
            return
        logger.debug("%s flow: %s -> %s", flow.name, flow.phase.value, phase.value)
        flow.phase = phase
        flow.phase_since = self._clock()
        if phase == TxPhase.IDLE:
            flow.record = None

    def _reset(self, flow: _Flow) -> None:
        flow.epoch += 1
        if flow.phase != TxPhase.IDLE:
            logger.debug("%s flow: %s -> idle (reset)", flow.name, flow.phase.value)
        flow.phase = TxPhase.IDLE
        flow.phase_since = self._clock()
        flow.error = None
        flow.record = None
        flow.approved_amount = None

    def _reset_view(self, flow: _Flow) -> StepResult:
        if flow.phase in IN_FLIGHT_PHASES:
            elapsed = self._clock() - flow.phase_since
            if elapsed < self._config.reset_after_seconds:
                return Err(
                    ErrorKind.NOT_READY,
                    f"Status can be reset after {self._config.reset_after_seconds:.0f}s.",
                )
            logger.info(
                "%s status view reset while %s; the transaction itself is unaffected",
                flow.name.capitalize(),
                flow.phase.value,
            )
        self._reset(flow)
        return Ok(flow.phase)

    def _notify(self, kind: NotifyKind, message: str) -> None:
        try:
            self._notifier.notify(kind, message)
        except Exception:
            logger.exception("Notifier failed for %r", message)

    async def _refresh_balances(self) -> None:
        if self._balances is not None:
            await self._balances.refresh()
