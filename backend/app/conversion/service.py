"""Conversion request orchestration: validate, store, convert, publish, always clean up."""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from typing import Optional

from app.config import ConverterSettings
from app.conversion.cleanup import CleanupCoordinator
from app.conversion.converter import ImageConverter
from app.conversion.errors import ClientInputError, ConversionError, EncodeError, IntakeError, MissingFile, PublishError
from app.conversion.intake import IntakeStore
from app.conversion.models import ConversionRequest, ConversionResult, IntakeArtifact, RequestState
from app.conversion.publisher import ArtifactPublisher
from app.conversion.validator import resolve_source_type, validate_request

logger = logging.getLogger("converter.service")


class ConversionOrchestrator:
    """Runs one conversion request to exactly one ConversionResult. Holds no per-request state."""

    def __init__(
        self,
        settings: ConverterSettings,
        intake: Optional[IntakeStore] = None,
        converter: Optional[ImageConverter] = None,
        publisher: Optional[ArtifactPublisher] = None,
        cleanup: Optional[CleanupCoordinator] = None,
    ):
        self.settings = settings
        self.intake = intake or IntakeStore(settings.upload_dir)
        self.converter = converter or ImageConverter()
        self.publisher = publisher or ArtifactPublisher(
            settings.output_dir,
            url_prefix=settings.public_url_prefix,
            name_attempts=settings.publish_name_attempts,
        )
        self.cleanup = cleanup or CleanupCoordinator()
        self._executor = ThreadPoolExecutor(max_workers=settings.max_workers, thread_name_prefix="convert")
        logger.info("ConversionOrchestrator initialized with max_workers=%s", settings.max_workers)

    def _transition(self, request: ConversionRequest, state: RequestState) -> RequestState:
        logger.debug("Request %s -> %s", request.request_id, state.value)
        return state

    def _reject(self, request: ConversionRequest, error: ClientInputError) -> ConversionResult:
        logger.info("Rejected %s (%s): %s", request.filename, error.kind, error)
        self._transition(request, RequestState.REJECTED)
        return ConversionResult(state=RequestState.REJECTED, error=error)

    def _store(self, request: ConversionRequest) -> IntakeArtifact:
        try:
            return self.intake.write(request.source, request.filename, max_bytes=self.settings.max_upload_bytes)
        except ConversionError:
            raise
        except Exception as e:
            logger.exception("Unexpected failure storing upload %s", request.filename)
            raise IntakeError(str(e)) from e

    def process(self, request: ConversionRequest) -> ConversionResult:
        """Blocking. Never raises ConversionError; failures come back inside the result."""
        state = self._transition(request, RequestState.RECEIVED)
        result: ConversionResult
        try:
            target = validate_request(request, self.settings)
        except ClientInputError as e:
            return self._reject(request, e)
        except Exception as e:
            logger.exception("Unexpected failure reading upload %s", request.filename)
            self._transition(request, RequestState.FAILED)
            self._transition(request, RequestState.DONE)
            return ConversionResult(state=RequestState.FAILED, error=IntakeError(str(e)))

        with ExitStack() as stack:
            try:
                stored = self.cleanup.scope(stack, self._store(request))
                state = self._transition(request, RequestState.STORED)
                if not request.filename and stored.size == 0:
                    raise MissingFile("Empty upload without a filename")
                source_type = resolve_source_type(request.content_type, request.filename)
                try:
                    encoded = self.converter.convert(stored, source_type, target)
                except ConversionError:
                    raise
                except Exception as e:
                    logger.exception("Unexpected conversion failure for %s", request.filename)
                    raise EncodeError(str(e)) from e
                state = self._transition(request, RequestState.CONVERTED)
                try:
                    artifact = self.publisher.publish(encoded)
                except ConversionError:
                    raise
                except Exception as e:
                    logger.exception("Unexpected publish failure for %s", request.filename)
                    raise PublishError(str(e)) from e
                state = self._transition(request, RequestState.PUBLISHED)
                logger.info("Converted %s -> %s", request.filename, artifact.name)
                result = ConversionResult(state=RequestState.PUBLISHED, artifact=artifact)
            except ClientInputError as e:
                # Ceiling or empty body only detectable while copying a non-seekable upload
                result = self._reject(request, e)
            except ConversionError as e:
                logger.warning("Conversion of %s failed in state %s (%s): %s", request.filename, state.value, e.kind, e)
                self._transition(request, RequestState.FAILED)
                result = ConversionResult(state=RequestState.FAILED, error=e)
        self._transition(request, RequestState.DONE)
        return result

    async def submit(self, request: ConversionRequest) -> ConversionResult:
        """Run `process` on the worker pool so decode/encode never blocks the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.process, request)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
