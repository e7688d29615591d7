# =============================================================================
# AUGUR FORK RISK MONITOR
# Module: risk/storage.py
# Purpose: Persist the fork-risk.json artifact
# =============================================================================
#
# STORAGE:
# public/data/
# └── fork-risk.json   - single artifact, fully replaced every run
#
# WRITE PROTOCOL:
# 1. Serialize to a temp file in the same directory
# 2. chmod 0644 (readable by the web server)
# 3. os.replace() onto the target (atomic on POSIX and Windows)
# 4. On any failure the temp file is removed and the old artifact survives
#
# =============================================================================

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from shared.config import OUTPUT_PATH
from .models import RiskResult

logger = logging.getLogger(__name__)

PERSISTED_DISPUTES = 5

# The artifact is served by a separate reader; mkstemp creates files as 0600
ARTIFACT_MODE = 0o644


class ResultWriter:
    """
    Writes the run artifact to a fixed path.

    There is no merge or append: the last completed write wins.
    """

    def __init__(
        self,
        output_path: Optional[Path] = None,
        max_disputes: int = PERSISTED_DISPUTES,
    ):
        """
        Initialize result writer.

        Args:
            output_path: Artifact path (defaults to public/data/fork-risk.json)
            max_disputes: Max dispute records persisted
        """
        self.output_path = Path(output_path) if output_path else OUTPUT_PATH
        self.max_disputes = max_disputes

    def render(self, result: RiskResult) -> Dict[str, Any]:
        """Build the JSON document for a result."""
        return result.to_dict(max_details=self.max_disputes)

    def save(self, result: RiskResult) -> Path:
        """
        Atomically replace the artifact with this result.

        Args:
            result: Success or error result

        Returns:
            Path to saved file
        """
        document = self.render(result)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp = tempfile.mkstemp(
            dir=str(self.output_path.parent),
            prefix=f".{self.output_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.chmod(tmp, ARTIFACT_MODE)
            os.replace(tmp, str(self.output_path))
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise

        logger.info(f"Results saved to {self.output_path}")
        return self.output_path

    def load(self) -> Dict[str, Any]:
        """
        Load the current artifact.

        Returns:
            Parsed fork-risk.json document
        """
        with open(self.output_path, "r", encoding="utf-8") as f:
            return json.load(f)
