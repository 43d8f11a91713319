# signing/bootstrap.py
"""
Wiring for the signing feature.

``SigningContainer`` builds every service from a ``ConfigService`` and owns
the resources they share (database connections, event log). Whoever builds
the container closes it.
"""
from __future__ import annotations

import logging
from typing import Optional

from core.config.config_service import ConfigService
from core.logging.logic.logger import EventLogger
from core.logging.logic.logging_setup import configure_logging
from signing.adapters.artifact_store import ArtifactStore, build_artifact_store
from signing.adapters.current_user_provider import CurrentUserProvider
from signing.adapters.sqlite_adapter import SQLiteAdapter
from signing.logic.document_service import DocumentService
from signing.logic.encryption import SignatureVault
from signing.logic.fallback_document import FallbackDocumentSynthesizer
from signing.logic.pdf_signer import PdfSigningEngine
from signing.logic.pdf_validator import PdfValidator
from signing.logic.signing_service import DocumentSigningService
from signing.logic.status_verifier import StatusVerifier
from signing.models.signature_placement import SignaturePlacement
from signing.repository.signing_repository import SigningRepository

logger = logging.getLogger(__name__)


class SigningContainer:
    def __init__(self, config: ConfigService, user_provider: CurrentUserProvider,
                 *, setup_logging: bool = False) -> None:
        if setup_logging:
            configure_logging(config.logging.level)

        self.config = config
        self.db = SQLiteAdapter(config.database.signing)
        self.event_logger = EventLogger(config.database.logging)

        storage = config.storage
        self.store: ArtifactStore = build_artifact_store(
            managed_mode=storage.managed_mode,
            db=self.db,
            document_root=storage.document_root,
            blob_prefix=storage.blob_prefix,
            signed_dir=storage.signed_dir,
            documents_dir=storage.documents_dir,
        )
        self.repository = SigningRepository(self.db)

        sig = config.signing
        self.validator = PdfValidator()
        self.engine = PdfSigningEngine(
            placement=SignaturePlacement(
                x_ratio=sig.x_ratio,
                y_ratio=sig.y_ratio,
                image_width=sig.image_width,
                image_height=sig.image_height,
                text_font_size=sig.text_font_size,
            ),
            strategy_timeout=sig.strategy_timeout or None,
        )
        self.vault = SignatureVault(sig.key_file)

        self.signing_service = DocumentSigningService(
            repository=self.repository,
            store=self.store,
            user_provider=user_provider,
            validator=self.validator,
            engine=self.engine,
            synthesizer=FallbackDocumentSynthesizer(),
            verifier=StatusVerifier(self.repository, self.store),
            vault=self.vault,
            event_logger=self.event_logger,
        )
        self.document_service = DocumentService(
            repository=self.repository,
            store=self.store,
            user_provider=user_provider,
            validator=self.validator,
            event_logger=self.event_logger,
        )
        logger.info(
            f"Signing services ready (db={config.database.signing}, backend={self.store.active_kind.value})"
        )

    def close(self) -> None:
        self.db.close()
        self.event_logger.close()

    def __enter__(self) -> "SigningContainer":
        return self

    def __exit__(self, *exc: object) -> Optional[bool]:
        self.close()
        return None
