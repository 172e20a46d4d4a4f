"""Runtime configuration for the print pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

AUTO_TRAY_LABEL = "Auto-Select"
DEFAULT_PAPER_SIZE_LIMIT = 20


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    try:
        return max(1, int(raw)) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True)
class PipelineConfig:
    """
    Tool locations and limits used by the printer backends.

    Timeouts are in seconds; ``None`` means wait indefinitely. Discovery
    queries have no timeout by default, job submission gets a defensive one.
    """

    lp_path: str = "lp"
    lpstat_path: str = "lpstat"
    lpoptions_path: str = "lpoptions"
    powershell_path: str = "powershell"
    sumatra_path: Optional[str] = None
    command_timeout: Optional[float] = None
    submit_timeout: Optional[float] = 60.0
    paper_size_limit: int = DEFAULT_PAPER_SIZE_LIMIT
    temp_dir: Optional[str] = None
    auto_tray_label: str = AUTO_TRAY_LABEL
    job_name: str = "printprep_job"

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a config from ``PRINTPREP_*`` environment variables."""
        base = cls()
        return replace(
            base,
            lp_path=os.environ.get("PRINTPREP_LP", base.lp_path),
            lpstat_path=os.environ.get("PRINTPREP_LPSTAT", base.lpstat_path),
            lpoptions_path=os.environ.get("PRINTPREP_LPOPTIONS", base.lpoptions_path),
            powershell_path=os.environ.get("PRINTPREP_POWERSHELL", base.powershell_path),
            sumatra_path=os.environ.get("PRINTPREP_SUMATRA") or None,
            command_timeout=_env_float("PRINTPREP_COMMAND_TIMEOUT", base.command_timeout),
            submit_timeout=_env_float("PRINTPREP_SUBMIT_TIMEOUT", base.submit_timeout),
            paper_size_limit=_env_int("PRINTPREP_PAPER_SIZE_LIMIT", base.paper_size_limit),
            temp_dir=os.environ.get("PRINTPREP_TEMP_DIR") or None,
        )
