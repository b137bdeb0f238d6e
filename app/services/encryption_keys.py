"""Per-session E2E key lifecycle: make sure the signed-in user has a usable keypair."""
import enum
import logging

from app.services.e2e_crypto import DECRYPT_FAILED_PLACEHOLDER, decrypt_received, encrypt_message, generate_key_pair
from app.services.key_directory import KeyDirectory
from app.services.key_store import LocalKeyStore

logger = logging.getLogger(__name__)


class KeyState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    CHECKING = "checking"
    READY = "ready"


class KeysNotReadyError(RuntimeError):
    pass


class EncryptionKeyManager:
    """
    UNINITIALIZED -> CHECKING -> READY.

    A locally stored private key is adopted only while the directory still
    holds a public key for this user. Otherwise (first sign-in, new device,
    wiped directory row) a fresh keypair is generated and its public half
    overwrites the directory record.
    """

    def __init__(self, user_id: str, store: LocalKeyStore, directory: KeyDirectory):
        self.user_id = user_id
        self.store = store
        self.directory = directory
        self.state = KeyState.UNINITIALIZED
        self._private_key: dict | None = None

    @property
    def ready(self) -> bool:
        return self.state is KeyState.READY

    @property
    def private_key(self) -> dict:
        if self._private_key is None:
            raise KeysNotReadyError("Encryption keys are not initialized; call ensure_ready() first")
        return self._private_key

    def ensure_ready(self) -> dict:
        if self.state is KeyState.READY and self._private_key is not None:
            return self._private_key
        self.state = KeyState.CHECKING
        try:
            stored = self.store.get_private_key()
            if stored is not None and self.directory.get_public_key(self.user_id):
                self._private_key = stored
            else:
                self._private_key = self._rotate()
        except Exception:
            self.state = KeyState.UNINITIALIZED
            raise
        self.state = KeyState.READY
        return self._private_key

    def _rotate(self) -> dict:
        pair = generate_key_pair()
        self.store.set_private_key(pair.private_key_jwk)
        self.directory.upsert_public_key(self.user_id, pair.public_key)
        logger.info("Generated E2E keypair for user=%s", self.user_id)
        return pair.private_key_jwk

    def peer_public_key(self, peer_user_id: str) -> str | None:
        return fetch_peer_public_key(self.directory, peer_user_id)

    def encrypt_for(self, peer_user_id: str, plaintext: str) -> str:
        peer_key = self.peer_public_key(peer_user_id)
        if not peer_key:
            raise LookupError(f"No public key on record for user {peer_user_id}")
        return encrypt_message(plaintext, self.private_key, peer_key)

    def decrypt_from(self, peer_user_id: str, payload_b64: str) -> str:
        peer_key = self.peer_public_key(peer_user_id)
        if not peer_key:
            return DECRYPT_FAILED_PLACEHOLDER
        return decrypt_received(payload_b64, self.private_key, peer_key)


def fetch_peer_public_key(directory: KeyDirectory, user_id: str | None) -> str | None:
    """Another user's public key, or None when they have not set up encryption."""
    if not user_id:
        return None
    return directory.get_public_key(user_id) or None
