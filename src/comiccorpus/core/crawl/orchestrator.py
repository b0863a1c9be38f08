"""Orchestration du crawl : authentification par provider, parcours des cibles, ingestion incrémentale."""

from __future__ import annotations

import datetime
import logging
from typing import Callable

from comiccorpus.core.adapters import ProviderAdapter
from comiccorpus.core.crawl.context import CrawlContext
from comiccorpus.core.errors import (
    AuthenticationFailure,
    ExtractionFailure,
    NetworkFailure,
    PersistenceFailure,
)
from comiccorpus.core.models import (
    AssetRecord,
    CrawlReport,
    EpisodeDescriptor,
    EpisodeOutcome,
    EpisodeRecord,
    Provider,
    Target,
    TargetResult,
    TargetStatus,
)
from comiccorpus.core.utils.http import HttpSession
from comiccorpus.core.utils.timestamps import to_iso_utc

logger = logging.getLogger(__name__)

# Callbacks typés pour l'orchestrateur
ProgressCallback = Callable[[str, float, str], None]  # step_name, percent, message
LogCallback = Callable[[str, str], None]  # level, message

EPISODE_ERRORS = (NetworkFailure, ExtractionFailure, PersistenceFailure)


class CrawlOrchestrator:
    """
    Exécute un run de crawl complet sur le registre de cibles.

    Un run : instant "now" figé au départ, une authentification par provider
    référencé par une cible active, puis chaque cible dans l'ordre du registre.
    Les épisodes déjà en base ne sont jamais re-téléchargés.
    """

    def __init__(
        self,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ):
        self.on_progress = on_progress
        self.on_log = on_log

    def log(self, level: str, msg: str) -> None:
        if self.on_log:
            self.on_log(level, msg)
        getattr(logger, level.lower(), logger.info)(msg)

    def _emit_progress(self, step_name: str, percent: float, message: str) -> None:
        if not self.on_progress:
            return
        self.on_progress(step_name, max(0.0, min(1.0, percent)), message)

    def run(self, context: CrawlContext) -> CrawlReport:
        now = context.clock()
        run_ts = to_iso_utc(now)
        report = CrawlReport(started_at=run_ts)
        targets = context.db.load_targets()
        total = len(targets)
        self.log("info", f"Crawl started at {run_ts} ({total} target(s))")

        try:
            self._authenticate_all(context, targets, report)
            for i, target in enumerate(targets):
                label = f"{target.provider}/{target.external_id}"
                self._emit_progress("crawl", i / total if total else 0.0, f"Target: {label}")
                result = self._run_target(context, target, now, run_ts, report)
                report.targets.append(result)
            self._emit_progress("crawl", 1.0, "Done")
        finally:
            context.close_sessions()

        report.finished_at = to_iso_utc(context.clock())
        self.log(
            "info",
            f"Crawl finished: {report.persisted} episode(s) persisted, "
            f"{report.failed_episodes} failed episode(s), "
            f"{len(report.failed_targets)} failed target(s)",
        )
        return report

    def _authenticate_all(self, context: CrawlContext, targets: list[Target], report: CrawlReport) -> None:
        """Une session authentifiée par provider ayant au moins une cible active."""
        providers: list[Provider] = []
        for target in targets:
            if target.status == TargetStatus.ENABLED and target.provider not in providers:
                providers.append(target.provider)

        for provider in providers:
            adapter = context.adapter_for(provider)
            self.log("info", f"Authenticating on {provider}")
            http = context.new_session(provider)
            try:
                context.sessions[provider] = adapter.authenticate(http, context.credentials)
            except AuthenticationFailure as e:
                http.close()
                report.failed_providers.add(provider)
                self.log("error", f"Authentication failed for {provider}: {e}")

    def _run_target(
        self,
        context: CrawlContext,
        target: Target,
        now: datetime.datetime,
        run_ts: str,
        report: CrawlReport,
    ) -> TargetResult:
        provider, external_id = target.provider, target.external_id
        if target.status != TargetStatus.ENABLED:
            self.log("debug", f"Skipping target {provider}/{external_id} (status {target.status.name})")
            return TargetResult(
                provider, external_id, success=True, skipped=True, message=f"status {target.status.name}"
            )
        if provider in report.failed_providers or provider not in context.sessions:
            return TargetResult(provider, external_id, success=False, message="authentication failed")

        adapter = context.adapter_for(provider)
        session = context.sessions[provider]
        self.log("info", f"Crawling {provider}/{external_id}")
        try:
            listing = adapter.list_episodes(session, external_id)
        except (ExtractionFailure, NetworkFailure) as e:
            self.log("error", f"Cannot list episodes of {provider}/{external_id}: {e}")
            return TargetResult(provider, external_id, success=False, message=str(e))

        result = TargetResult(provider, external_id, success=True, title=listing.title)
        try:
            context.db.upsert_title(provider, external_id, listing.title)
        except PersistenceFailure as e:
            self.log("error", str(e))

        episodes = sorted(listing.episodes, key=lambda d: d.seq or 0)
        for descriptor in episodes:
            outcome = self._process_episode(context, adapter, session, target, descriptor, now)
            result.count(outcome)

        try:
            context.db.update_target_attempt(provider, external_id, run_ts)
            result.attempt_recorded = True
        except PersistenceFailure as e:
            self.log("error", str(e))

        result.message = (
            f"{result.persisted} new, {result.skipped_existing} existing, "
            f"{result.skipped_unavailable} unavailable, {result.failed} failed"
        )
        self.log("info", f"{provider}/{external_id}: {result.message}")
        return result

    def _process_episode(
        self,
        context: CrawlContext,
        adapter: ProviderAdapter,
        session: HttpSession,
        target: Target,
        descriptor: EpisodeDescriptor,
        now: datetime.datetime,
    ) -> EpisodeOutcome:
        provider, comic_id = target.provider, target.external_id
        if descriptor.is_notice:
            self.log("debug", f"Skipping notice {descriptor.native_id}")
            return EpisodeOutcome.SKIPPED_NOTICE
        seq = descriptor.seq
        if seq is None or seq < 1:
            self.log("error", f"Invalid sequence for episode {descriptor.native_id}: {seq}")
            return EpisodeOutcome.FAILED
        try:
            exists = context.db.exists(provider, comic_id, seq)
        except PersistenceFailure as e:
            self.log("error", f"Episode {seq} failed: {e}")
            return EpisodeOutcome.FAILED
        if exists:
            self.log("debug", f"Episode {seq} already in database")
            return EpisodeOutcome.SKIPPED_EXISTING
        if not descriptor.is_available(now):
            self.log("info", f"Episode {seq} not available before {descriptor.available_at}")
            return EpisodeOutcome.SKIPPED_UNAVAILABLE

        self.log("info", f"Fetching episode {seq} ({descriptor.native_id})")
        try:
            assets = adapter.fetch_episode_assets(session, comic_id, descriptor)
            if not assets.images:
                raise ExtractionFailure(
                    f"No image for episode {seq}", provider=provider.value, external_id=comic_id
                )
            timestamp = to_iso_utc(context.clock())
            episode = EpisodeRecord(
                provider=provider,
                comic_id=comic_id,
                seq=seq,
                title=assets.title or descriptor.name,
                image_count=len(assets.images),
                created_at=timestamp,
                last_update=timestamp,
            )
            records = [
                AssetRecord(
                    provider=provider,
                    comic_id=comic_id,
                    episode_seq=seq,
                    image_seq=image_seq,
                    data=data,
                    updated_at=timestamp,
                )
                for image_seq, data in enumerate(assets.images, start=1)
            ]
            context.db.insert_episode_with_assets(episode, records)
        except EPISODE_ERRORS as e:
            self.log("error", f"Episode {seq} failed: {e}")
            return EpisodeOutcome.FAILED
        self.log("debug", f"Episode {seq} persisted ({len(records)} image(s))")
        return EpisodeOutcome.PERSISTED


def run_crawl(
    context: CrawlContext,
    *,
    on_progress: ProgressCallback | None = None,
    on_log: LogCallback | None = None,
) -> CrawlReport:
    """Raccourci : un run complet avec un orchestrateur neuf."""
    return CrawlOrchestrator(on_progress=on_progress, on_log=on_log).run(context)
