"""
Encryption helpers

- SettingsCipher: Fernet (AES-128-CBC + HMAC) for secrets kept in SiteSetting
- encrypt_document / decrypt_document: AES-256-GCM for stored client files,
  laid out as salt(32) + iv(16) + tag(16) + ciphertext
"""
import base64
import hashlib
import os
from cryptography.exceptions import InvalidTag
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from flask import current_app
from caportal.exceptions import PortalException

SALT_LENGTH = 32
IV_LENGTH = 16
TAG_LENGTH = 16
KDF_ITERATIONS = 100000
HEADER_LENGTH = SALT_LENGTH + IV_LENGTH + TAG_LENGTH


class SettingsCipher:
    """Fernet cipher keyed from SETTINGS_ENCRYPTION_KEY (falls back to SECRET_KEY)"""

    def __init__(self, secret=None):
        if secret is None:
            secret = current_app.config.get('SETTINGS_ENCRYPTION_KEY') or current_app.config['SECRET_KEY']
        # Any passphrase -> 32 url-safe base64 bytes
        key = base64.urlsafe_b64encode(hashlib.sha256(secret.encode('utf-8')).digest())
        self.cipher = Fernet(key)

    def encrypt(self, value: str) -> str:
        if not value:
            return ''
        return self.cipher.encrypt(value.encode('utf-8')).decode('ascii')

    def decrypt(self, token: str) -> str:
        if not token:
            return ''
        try:
            return self.cipher.decrypt(token.encode('ascii')).decode('utf-8')
        except (InvalidToken, ValueError):
            current_app.logger.warning('Stored setting could not be decrypted; key changed?')
            return ''


def document_key():
    return current_app.config.get('DOCUMENT_ENCRYPTION_KEY')


def _derive_key(master_key, salt):
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=KDF_ITERATIONS)
    return kdf.derive(master_key.encode('utf-8'))


def encrypt_document(data: bytes, master_key=None) -> bytes:
    master_key = master_key or document_key()
    if not master_key:
        raise PortalException('DOCUMENT_ENCRYPTION_KEY is not configured')

    salt = os.urandom(SALT_LENGTH)
    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(_derive_key(master_key, salt)).encrypt(iv, data, None)
    # AESGCM appends the tag; store it ahead of the ciphertext
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return salt + iv + tag + ciphertext


def decrypt_document(blob: bytes, master_key=None) -> bytes:
    master_key = master_key or document_key()
    if not master_key:
        raise PortalException('DOCUMENT_ENCRYPTION_KEY is not configured')
    if len(blob) < HEADER_LENGTH:
        raise PortalException('Encrypted document is truncated')

    salt = blob[:SALT_LENGTH]
    iv = blob[SALT_LENGTH:SALT_LENGTH + IV_LENGTH]
    tag = blob[SALT_LENGTH + IV_LENGTH:HEADER_LENGTH]
    ciphertext = blob[HEADER_LENGTH:]
    try:
        return AESGCM(_derive_key(master_key, salt)).decrypt(iv, ciphertext + tag, None)
    except InvalidTag:
        current_app.logger.error('Document failed authentication on decrypt')
        raise PortalException('Document could not be decrypted')
