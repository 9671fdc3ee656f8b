"""Logging configuration for keyrotator."""

import json
import logging
import sys
from typing import Any, Dict, List, Optional


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Setup logging configuration for the CLI.

    Args:
        verbose: Enable verbose/debug logging
        log_file: Optional log file path
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.set_name("keyrotator.console")
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # warm Lambda containers call this once per invocation
    for handler in [h for h in root_logger.handlers if (h.get_name() or "").startswith("keyrotator.")]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.set_name("keyrotator.file")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    for name in ("urllib3", "git", "botocore", "boto3", "googleapiclient", "kubernetes"):
        logging.getLogger(name).setLevel(logging.WARNING)


def obfuscate(source: str) -> str:
    """
    Mask all but the last four characters of an identifier.

    Identifiers shorter than eight characters are returned unchanged.
    """
    if not source or len(source) < 8:
        return source or ""
    return "*" * (len(source) - 4) + source[-4:]


class AuditLogger:
    """Emits structured audit records for key creation, updates and deletion.

    Every field whose name ends in ``key_id`` is obfuscated before it is
    logged or stored.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("keyrotator.audit")
        self.records: List[Dict[str, Any]] = []

    def event(self, message: str, **fields: Any) -> Dict[str, Any]:
        """Log one audit record and keep it for the run summary."""
        masked = {
            name: obfuscate(value) if name.endswith("key_id") and isinstance(value, str) else value
            for name, value in fields.items()
        }
        record = {"message": message, **masked}
        self.records.append(record)
        self.logger.info("%s %s", message, json.dumps(masked, sort_keys=True, default=_to_json))
        return record


def _to_json(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return str(value)
