import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from . import __version__


@dataclass(frozen=True)
class BuildInfo:
    version: str
    commit: str = ""
    date: str = ""

    def as_dict(self) -> Dict[str, str]:
        return {
            "version": self.version.strip(),
            "commit": self.commit.strip(),
            "date": self.date.strip(),
        }

    def render_text(self) -> str:
        ver = self.version.strip() or "dev"
        commit = self.commit.strip()
        date = self.date.strip()
        if commit or date:
            ver = f"{ver} ({commit} {date})"
        return ver


def build_info_from_env(env: Optional[Mapping[str, str]] = None) -> BuildInfo:
    """Capture build metadata once at process start."""
    if env is None:
        env = os.environ
    return BuildInfo(
        version=env.get("WIKIDATA_CLI_VERSION", __version__).strip(),
        commit=env.get("WIKIDATA_CLI_COMMIT", "").strip(),
        date=env.get("WIKIDATA_CLI_DATE", "").strip(),
    )
