# src/gatekeeper/verify.py
"""
Gatekeeper admission for agents.

Two ways in:
  - AgentVerifier: prove control of an on-chain agent registration by
    signing a server challenge with the agent wallet (EIP-191 personal
    message), then the server allows the Minecraft username.
  - GatekeeperClient.quick_join(): register a username directly, only
    when the server runs in test mode.

HTTP goes through a requests.Session that callers may inject.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from eth_account import Account
from eth_account.messages import encode_defunct

log = logging.getLogger(__name__)

GATEKEEPER_URL = "http://89.167.28.237:3002"
DEFAULT_TIMEOUT_S = 10.0


class VerificationError(RuntimeError):
    """Gatekeeper refused, the wallet did not match, or the server was unreachable."""


def _error_field(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"HTTP {response.status_code}"


def sign_challenge(private_key: str, challenge: str) -> tuple[str, str]:
    """Sign `challenge` as a personal message. Returns (address, 0x-signature)."""
    try:
        account = Account.from_key(private_key)
    except (TypeError, ValueError) as e:
        raise VerificationError("Invalid agent private key") from e
    signed = account.sign_message(encode_defunct(text=challenge))
    return account.address, "0x" + bytes(signed.signature).hex()


class GatekeeperClient:
    """Thin client for the gatekeeper HTTP API."""

    def __init__(
        self,
        base_url: str = GATEKEEPER_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

    def get(self, path: str) -> requests.Response:
        try:
            return self.session.get(f"{self.base_url}{path}", timeout=self.timeout_s)
        except requests.RequestException as e:
            raise VerificationError(f"Could not reach gatekeeper: {e}") from e

    def post(self, path: str, body: Dict[str, Any]) -> requests.Response:
        try:
            return self.session.post(f"{self.base_url}{path}", json=body, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise VerificationError(f"Could not reach gatekeeper: {e}") from e

    def status(self) -> Dict[str, Any]:
        """Server status: {"testMode": bool, "agentsVerified": int, ...}."""
        response = self.get("/")
        if not response.ok:
            raise VerificationError(f"Status check failed: {_error_field(response)}")
        return response.json()

    def quick_join(self, username: str) -> Dict[str, Any]:
        """
        Register `username` without verification (test mode only).

        Returns the server's JSON body; check "success" / "error".
        """
        response = self.post("/api/quick-join", {"username": username})
        try:
            data = response.json()
        except ValueError:
            return {"success": False, "error": f"HTTP {response.status_code}"}
        return data if isinstance(data, dict) else {"success": False, "error": "Unknown error"}


class AgentVerifier:
    """
    Challenge-signature verification for one agent.

    Args:
        minecraft_username: in-game name to admit.
        agent_id: on-chain agent registration id.
        chain_id: chain where the registration lives.
        private_key: agent wallet key used to sign the challenge.
    """

    def __init__(
        self,
        minecraft_username: str,
        agent_id: Any,
        chain_id: Any,
        private_key: str,
        gatekeeper_url: str = GATEKEEPER_URL,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.minecraft_username = minecraft_username
        self.agent_id = agent_id
        self.chain_id = chain_id
        self._private_key = private_key
        self._client = GatekeeperClient(gatekeeper_url, session=session, timeout_s=timeout_s)

    @property
    def gatekeeper_url(self) -> str:
        return self._client.base_url

    def is_verified(self) -> bool:
        response = self._client.get(f"/api/verify/{self.minecraft_username}")
        if not response.ok:
            raise VerificationError(f"Verification check failed: {_error_field(response)}")
        return bool(response.json().get("verified"))

    def verify(self) -> bool:
        """
        Run start -> sign -> complete. Returns True on success.

        Raises VerificationError with the server's error text on refusal,
        and before /complete when the key does not control the wallet the
        server expects.
        """
        log.info("Verifying agent %s...", self.minecraft_username)

        start = self._client.post(
            "/api/verify/start",
            {
                "minecraftUsername": self.minecraft_username,
                "agentId": self.agent_id,
                "chainId": self.chain_id,
            },
        )
        if not start.ok:
            raise VerificationError(f"Verification start failed: {_error_field(start)}")

        data = start.json()
        challenge = data["challenge"]
        nonce = data["nonce"]
        wallet_to_sign = str(data["walletToSign"])
        log.info("Challenge received. Signing with wallet %s...", wallet_to_sign)

        address, signature = sign_challenge(self._private_key, challenge)
        if address.lower() != wallet_to_sign.lower():
            raise VerificationError(f"Wallet mismatch. Expected {wallet_to_sign}, got {address}")

        complete = self._client.post(
            "/api/verify/complete",
            {"nonce": nonce, "signature": signature},
        )
        if not complete.ok:
            raise VerificationError(f"Verification failed: {_error_field(complete)}")

        log.info("Verification successful: %s", complete.json().get("message", ""))
        return True
