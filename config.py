import os
import yaml
import keyring
from loguru import logger

APP_NAME = "liftlog"
APP_VERSION = "1.0.0"
SECRET_PLACEHOLDER = True


def default_settings_path() -> str:
    return os.environ.get("LIFTLOG_SETTINGS", "settings.yaml")


class YamlConfig:
    """Mirror of the settings table in a YAML file.

    With ``ENCRYPT_SETTINGS=1`` the store token and webhook URL are kept in
    the OS keyring and the file only records that a secret exists.
    """

    SENSITIVE_KEYS = ("store_api_token", "webhook_url")

    def __init__(self, path: str | None = None, *, encrypt: bool | None = None) -> None:
        self.path = path or default_settings_path()
        if encrypt is None:
            encrypt = os.environ.get("ENCRYPT_SETTINGS") == "1"
        self.encrypt = encrypt
        self.service = APP_NAME

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a settings mapping")
        if self.encrypt:
            for key in self.SENSITIVE_KEYS:
                if key not in data:
                    continue
                secret = keyring.get_password(self.service, key)
                if secret is None:
                    logger.warning("No keyring entry for {}, ignoring it", key)
                    data.pop(key)
                else:
                    data[key] = secret
        return data

    def save(self, data: dict) -> None:
        out = {k: v for k, v in data.items() if v is not None}
        if self.encrypt:
            for key in self.SENSITIVE_KEYS:
                if key in out and out[key] is not SECRET_PLACEHOLDER:
                    keyring.set_password(self.service, key, str(out[key]))
                    out[key] = SECRET_PLACEHOLDER
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(out, f, allow_unicode=True, sort_keys=True)
