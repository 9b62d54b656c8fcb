from __future__ import annotations

"""Owner of the signature-authenticated wallet session.

``WalletSession`` is the only object allowed to create, replace or clear the
``Session`` value. Everything else reads the ``current`` snapshot, or
registers a listener that is told about every replacement.
"""

import logging
import time
from typing import Callable, List, Optional, Sequence

from securenotes.adapters.rpc_errors import RpcError, UNRECOGNIZED_CHAIN
from securenotes.adapters.signing import build_challenge, recover_signer
from securenotes.domain.entities import Account, Session
from securenotes.domain.errors import (
    NetworkSwitchRejected,
    NoProviderDetected,
    SignatureMismatch,
    SignatureRejected,
    UnknownFailure,
)
from securenotes.domain.network import NetworkConfig
from securenotes.domain.ports import UseCaseError, WalletPort

from .error_mapping import is_user_rejection

SessionListener = Callable[[Optional[Session]], None]
RecoverFn = Callable[[str, str], str]


def _now_ms() -> int:
    return int(time.time() * 1000)


class WalletSession:
    """Connect, re-verify and tear down the session for one wallet account.

    Only one authentication attempt runs at a time; a trigger that arrives
    while one is in flight is ignored. Every ``connect``, ``disconnect`` and
    external account change bumps a generation counter, and an attempt only
    installs its result when the generation it started under is still current.
    An account change that lands mid-attempt therefore supersedes it: the stale
    result is dropped and the newest reported account is verified instead.
    """

    def __init__(
        self,
        wallet: WalletPort,
        network: NetworkConfig,
        *,
        recover: RecoverFn = recover_signer,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.wallet = wallet
        self.network = network
        self._recover = recover
        self._clock_ms = clock_ms
        self._session: Optional[Session] = None
        self._manually_disconnected = False
        self._in_flight = False
        self._generation = 0
        self._pending_accounts: Optional[List[str]] = None
        self._listeners: List[SessionListener] = []
        self._attached = False

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------
    @property
    def current(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None and self._session.authenticated

    @property
    def manually_disconnected(self) -> bool:
        return self._manually_disconnected

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def add_listener(self, listener: SessionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def attach(self) -> None:
        """Subscribe to the provider's account-change notifications."""
        if self._attached:
            return
        self.wallet.subscribe_accounts_changed(self.on_external_account_change)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self.wallet.unsubscribe_accounts_changed(self.on_external_account_change)
        self._attached = False

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def connect(self) -> Optional[Session]:
        """Run the full connect protocol and install the verified session.

        Returns:
            The installed session, or ``None`` when the call was ignored
            because another attempt is in flight, or when the attempt was
            superseded and no replacement session could be verified.

        Raises:
            NoProviderDetected, NetworkSwitchRejected, SignatureRejected,
            SignatureMismatch, UnknownFailure: The attempt failed; no session
            exists afterwards.
        """
        if self._in_flight:
            self._log.info("Connect ignored: an authentication attempt is already in flight")
            return None
        self._manually_disconnected = False
        self._generation += 1
        self._replace(None)
        return self._run_attempt(self._connect_steps)

    def disconnect(self) -> None:
        """Clear the session and suppress automatic re-authentication."""
        self._manually_disconnected = True
        self._generation += 1
        self._pending_accounts = None
        self._replace(None)
        self._log.info("Wallet disconnected by user")

    def on_external_account_change(self, accounts: Sequence[str]) -> Optional[Session]:
        """Handle the provider reporting a different active account.

        The current session is cleared before anything else. A new session is
        only installed after the reported account passes the challenge.
        """
        self._generation += 1
        self._replace(None)
        accounts = [a for a in accounts or () if a]
        if self._in_flight:
            # Replace, do not queue: only the latest report is verified.
            self._pending_accounts = accounts
            self._log.info("Account change during authentication; in-flight attempt superseded")
            return None
        if self._manually_disconnected or not accounts:
            return None
        return self._reauthenticate(accounts[0])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _run_attempt(self, steps: Callable[[], Session]) -> Optional[Session]:
        generation = self._generation
        self._in_flight = True
        self._pending_accounts = None
        try:
            session: Optional[Session] = steps()
        except UseCaseError:
            if self._generation == generation:
                raise
            session = None
        finally:
            self._in_flight = False

        if self._generation != generation:
            self._log.info("Discarding result of superseded authentication attempt")
            return self._follow_up()
        self._replace(session)
        if session is not None:
            self._log.info("Wallet connected: %s", session.account)
        return session

    def _follow_up(self) -> Optional[Session]:
        pending, self._pending_accounts = self._pending_accounts, None
        if self._manually_disconnected or not pending:
            return None
        return self._reauthenticate(pending[0])

    def _reauthenticate(self, account: str) -> Optional[Session]:
        try:
            return self._run_attempt(lambda: self._authenticate(account))
        except UseCaseError as exc:
            self._log.warning("Failed to verify new wallet account %s: %s", account, exc.message)
            return None

    def _connect_steps(self) -> Session:
        if not self.wallet.is_available():
            raise NoProviderDetected()
        self._ensure_network()
        return self._authenticate(self._request_account())

    def _ensure_network(self) -> None:
        chain_id = self.network.chain_id
        try:
            self.wallet.switch_network(chain_id)
            return
        except Exception as exc:
            if not (isinstance(exc, RpcError) and exc.code == UNRECOGNIZED_CHAIN):
                self._log.warning("Error switching network: %s", exc)
                raise NetworkSwitchRejected(
                    f"Failed to switch to {self.network.chain_name}."
                ) from exc
        self._log.info("Chain %s unknown to wallet; adding it", self.network.chain_id_hex)
        try:
            self.wallet.add_network(self.network.to_add_chain_params())
        except Exception as exc:
            self._log.warning("Error adding network: %s", exc)
            raise NetworkSwitchRejected(
                f"Failed to add {self.network.chain_name} to wallet."
            ) from exc

    def _request_account(self) -> str:
        try:
            accounts = self.wallet.request_accounts()
        except Exception as exc:
            if is_user_rejection(exc):
                raise SignatureRejected("Wallet account access was declined.") from exc
            raise UnknownFailure(f"Failed to connect wallet. {exc}".strip()) from exc
        if not accounts:
            raise SignatureRejected("The wallet did not expose any account.")
        return accounts[0]

    def _authenticate(self, candidate: str) -> Session:
        try:
            account = Account(candidate)
        except ValueError as exc:
            raise SignatureMismatch(f"Wallet returned an invalid account: {candidate!r}") from exc

        message = build_challenge(candidate, self._clock_ms())
        self._log.debug("Requesting signature for %s", account)
        try:
            signature = self.wallet.sign_message(candidate, message)
        except Exception as exc:
            if is_user_rejection(exc):
                raise SignatureRejected() from exc
            raise UnknownFailure(f"Failed to verify wallet ownership: {exc}") from exc

        try:
            recovered = self._recover(message, signature)
        except Exception as exc:
            self._log.warning("Could not recover signer for %s: %s", account, exc)
            raise SignatureMismatch() from exc
        if not account.matches(recovered):
            self._log.warning("Signature verification failed: expected %s, got %s", account, recovered)
            raise SignatureMismatch()
        return Session(
            account=account,
            network_id=self.network.chain_id,
            capability_handle=self.wallet,
        )

    def _replace(self, session: Optional[Session]) -> None:
        if session is self._session:
            return
        self._session = session
        for listener in list(self._listeners):
            listener(session)


__all__ = ["SessionListener", "WalletSession"]
