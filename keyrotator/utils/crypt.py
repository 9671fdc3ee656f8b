"""Encryption of key material at rest and signing of key commits."""

import base64
import json
import logging
import os
import shutil
import subprocess
import tempfile
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet

from .errors import SecurityError

logger = logging.getLogger(__name__)

DEFAULT_KEYRING_PATHS = ("/etc/cloud-key-rotator/akr.asc", "./akr.asc")


def encrypt_with_kms(plaintext: str, kms_key: str, kms_client: Any = None, credentials: Any = None) -> bytes:
    """
    Envelope encrypt ``plaintext`` under a Google Cloud KMS key.

    A fresh Fernet data key encrypts the plaintext and KMS encrypts the
    data key. The result is a JSON document holding both ciphertexts.

    Args:
        plaintext: Secret to encrypt
        kms_key: Full resource name of the KMS crypto key
        kms_client: Optional KeyManagementServiceClient
        credentials: Optional Google credentials for a new client

    Returns:
        bytes: Encrypted document
    """
    if kms_client is None:
        from google.cloud import kms

        kms_client = kms.KeyManagementServiceClient(credentials=credentials)

    data_key = Fernet.generate_key()
    try:
        response = kms_client.encrypt(request={"name": kms_key, "plaintext": data_key})
    except Exception as e:
        raise SecurityError(f"Failed to encrypt data key with KMS key {kms_key}: {e}") from e

    document = {
        "kms_key": kms_key,
        "encrypted_data_key": base64.b64encode(response.ciphertext).decode("utf-8"),
        "ciphertext": Fernet(data_key).encrypt(plaintext.encode("utf-8")).decode("utf-8"),
    }
    return json.dumps(document, indent=2).encode("utf-8")


def decrypt_with_kms(document: bytes, kms_client: Any = None, credentials: Any = None) -> str:
    """Reverse of encrypt_with_kms."""
    if kms_client is None:
        from google.cloud import kms

        kms_client = kms.KeyManagementServiceClient(credentials=credentials)

    data: Dict[str, str] = json.loads(document)
    response = kms_client.decrypt(
        request={
            "name": data["kms_key"],
            "ciphertext": base64.b64decode(data["encrypted_data_key"]),
        }
    )
    return Fernet(response.plaintext).decrypt(data["ciphertext"].encode("utf-8")).decode("utf-8")


class CommitSigningKeyring:
    """A throwaway GnuPG home holding the armoured key used to sign commits.

    Use as a context manager; the home directory is removed on exit.
    """

    def __init__(self, name: str, email: str, passphrase: str, path: Optional[str] = None):
        if not passphrase:
            raise SecurityError(
                "ArmouredKeyRing passphrase must not be empty",
                suggestions=["Set 'akr_pass' in the credentials section of the config"],
            )
        self.name = name
        self.email = email
        self.passphrase = passphrase
        self.path = path
        self.home: Optional[str] = None
        self.fingerprint = ""

    def _keyring_path(self) -> str:
        candidates = (self.path,) + DEFAULT_KEYRING_PATHS if self.path else DEFAULT_KEYRING_PATHS
        for candidate in candidates:
            if candidate and os.path.isfile(candidate):
                return candidate
        raise SecurityError(f"Armoured keyring not found in: {', '.join(c for c in candidates if c)}")

    def _gpg(self, *args: str) -> str:
        result = subprocess.run(
            ["gpg", "--homedir", self.home, "--batch", *args],
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            raise SecurityError(f"gpg {args[0]} failed", details=result.stderr)
        return result.stdout

    def __enter__(self) -> "CommitSigningKeyring":
        self.home = tempfile.mkdtemp(prefix="keyrotator-gnupg-")
        os.chmod(self.home, 0o700)
        try:
            passphrase_file = os.path.join(self.home, "passphrase")
            with open(passphrase_file, "w", encoding="utf-8") as f:
                f.write(self.passphrase)
            os.chmod(passphrase_file, 0o600)
            with open(os.path.join(self.home, "gpg.conf"), "w", encoding="utf-8") as f:
                f.write(f"pinentry-mode loopback\npassphrase-file {passphrase_file}\n")

            self._gpg("--import", self._keyring_path())
            self.fingerprint = self._find_identity()
        except Exception:
            self.cleanup()
            raise
        return self

    def _find_identity(self) -> str:
        identity = f"{self.name} <{self.email}>"
        fingerprint = ""
        for line in self._gpg("--list-secret-keys", "--with-colons").splitlines():
            fields = line.split(":")
            # the first fpr after a sec record is the primary key's
            if fields[0] == "sec":
                fingerprint = ""
            elif fields[0] == "fpr" and not fingerprint:
                fingerprint = fields[9]
            if fields[0] == "uid" and fields[9] == identity:
                return fingerprint
        raise SecurityError(f"Failed to find identity {identity} in armoured keyring")

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        if self.home:
            # signing starts an agent bound to the home directory
            try:
                subprocess.run(
                    ["gpgconf", "--homedir", self.home, "--kill", "gpg-agent"],
                    capture_output=True,
                    text=True,
                )
            except OSError as e:
                logger.warning("Unable to stop gpg-agent for %s: %s", self.home, e)
            shutil.rmtree(self.home, ignore_errors=True)
            self.home = None
