"""Coordinator - classifies a file and routes it to one transport."""
from dataclasses import replace
import logging
from typing import Optional

from .errors import UploadError
from .models import (
    ErrorInfo,
    ErrorKind,
    FileDescriptor,
    Strategy,
    TransferConfig,
    TransferOptions,
    TransferResult,
)
from .protocols import IAPIClient, IBaseURLProvider, ICredentialProvider, ITokenStore
from .services.api_client import HTTPAPIClient
from .services.base64_json import Base64Uploader
from .services.classifier import classify
from .services.multipart import MultipartUploader
from .services.response import extract_file_ref

logger = logging.getLogger(__name__)

AUDIO_FIELD = "recorded_call"
DOCUMENT_FIELD = "letter_document"
IMAGE_FIELD = "file"


def _describe_exception(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return f"{type(exc).__name__}: {repr(exc)}"


class TransferCoordinator:
    """
    Sends files to a remote API choosing the wire encoding per file.

    Credentials and base URL are injected; by default both come from the
    shared API client.

    Usage:
        # Owns its API client
        async with TransferCoordinator(config=TransferConfig.from_env()) as sender:
            result = await sender.send_file(file, TransferOptions(endpoints=endpoints))

        # With an existing client and explicit providers
        sender = TransferCoordinator(api, credentials=provider, base_url=StaticBaseURL(url))
        result = await sender.send_file(file, options)
    """

    def __init__(
        self,
        api_client: Optional[IAPIClient] = None,
        credentials: Optional[ICredentialProvider] = None,
        base_url: Optional[IBaseURLProvider] = None,
        config: Optional[TransferConfig] = None,
        token_store: Optional[ITokenStore] = None,
    ):
        self._config = config or TransferConfig()
        self._api_client = api_client
        self._credentials = credentials
        self._base_url = base_url
        self._token_store = token_store
        self._owned_client: Optional[HTTPAPIClient] = None

        self._multipart: Optional[MultipartUploader] = None
        self._base64: Optional[Base64Uploader] = None
        if api_client is not None:
            self._build_handlers(api_client)

    def _build_handlers(self, api_client: IAPIClient) -> None:
        self._multipart = MultipartUploader(
            api_client,
            credentials=self._credentials or api_client,
            base_url=self._base_url or api_client,
            credential_keys=self._config.credential_keys,
        )
        self._base64 = Base64Uploader(api_client)

    async def __aenter__(self):
        if self._api_client is None:
            self._owned_client = HTTPAPIClient(self._config, self._token_store)
            await self._owned_client.__aenter__()
            self._api_client = self._owned_client
            self._build_handlers(self._owned_client)
        return self

    async def __aexit__(self, *args):
        if self._owned_client:
            await self._owned_client.__aexit__(*args)
            self._owned_client = None
            self._api_client = None
            self._multipart = None
            self._base64 = None

    async def send_file(self, file: FileDescriptor, options: TransferOptions) -> TransferResult:
        """
        Transfer one file and return a TransferResult.

        Never raises: network, HTTP status, abort and unexpected errors all
        come back in `result.error`, including use before the coordinator
        is initialized.
        """
        if self._multipart is None or self._base64 is None:
            return TransferResult.fail(
                ErrorInfo(
                    kind=ErrorKind.UNEXPECTED,
                    message="TransferCoordinator not initialized. Use 'async with' or pass api_client.",
                )
            )

        logger.debug(f"send_file called: {file.name} size={file.size_bytes} type={file.mime_type!r}")
        meta = options.meta or {}

        try:
            strategy = classify(file, options.force_base64)
            endpoint = options.endpoints.for_strategy(strategy)
            logger.debug(f"{file.name}: strategy={strategy.value} endpoint={endpoint}")

            if strategy.is_multipart:
                default_field = AUDIO_FIELD if strategy is Strategy.AUDIO else DOCUMENT_FIELD
                result = await self._multipart.send(
                    file, endpoint, meta, default_field, options.on_progress, options.cancellation
                )
            else:
                result = await self._base64.send(
                    file, endpoint, meta, IMAGE_FIELD, options.cancellation
                )
        except UploadError as e:
            return TransferResult.fail(e.to_info())
        except Exception as e:
            logger.debug(f"Unexpected error in send_file for {file.name}: {e}")
            return TransferResult.fail(
                ErrorInfo(kind=ErrorKind.UNEXPECTED, message=_describe_exception(e))
            )

        if result.ok:
            result = replace(result, file_ref=extract_file_ref(result.response_body))
        return result
