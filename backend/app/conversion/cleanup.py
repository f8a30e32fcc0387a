"""Guaranteed removal of intake artifacts."""
import logging
from contextlib import ExitStack

from app.conversion.models import IntakeArtifact

logger = logging.getLogger("converter.cleanup")


class CleanupCoordinator:
    """Releases intake artifacts. Never raises: a failed removal is logged so it cannot mask the request's own error."""

    def release(self, intake: IntakeArtifact) -> bool:
        """Remove the intake file. Returns False if it was already gone or could not be removed."""
        try:
            intake.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not remove upload %s: %s", intake.path.name, e)
            return False
        logger.debug("Released upload %s", intake.path.name)
        return True

    def scope(self, stack: ExitStack, intake: IntakeArtifact) -> IntakeArtifact:
        """Register release of `intake` on `stack`; it runs once when the stack unwinds, whatever the exit path."""
        stack.callback(self.release, intake)
        return intake
