from dataclasses import dataclass, field
import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    opened: int = 0
    failed: List[Tuple[str, str]] = field(default_factory=list)


class Reconciler:
    """Replaces everything on the display with the entries of a manifest."""

    def __init__(self, display, loader):
        self.display = display
        self.loader = loader

    def reconcile(self, manifest):
        """Closes all displayed images, then opens every manifest line in order."""
        report = ReconcileReport()
        self.display.close_all()
        for locator in manifest.lines:
            try:
                result = self.loader.open(locator)
            except Exception as e:
                logger.error(f"Unexpected error opening image {locator!r}: {e}", exc_info=True)
                report.failed.append((locator, str(e)))
                continue
            if result.ok:
                report.opened += 1
            else:
                logger.warning(f"Could not open image {locator!r}: {result.error}")
                report.failed.append((locator, result.error))
        logger.info(f"Reconciled {len(manifest)} manifest entries: {report.opened} opened, {len(report.failed)} failed")
        return report
