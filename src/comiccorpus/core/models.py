"""Modèle de données : dataclasses typées pour cibles, titres, épisodes, assets et rapports de crawl."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum


class Provider(str, Enum):
    """Éditeurs supportés (variante fermée : un adapteur par membre)."""

    LEZHIN = "lezhin"
    NAVER = "naver"

    @classmethod
    def parse(cls, value: str) -> "Provider":
        """Résout un provider depuis sa valeur texte (insensible à la casse)."""
        key = (value or "").strip().lower()
        for member in cls:
            if member.value == key:
                return member
        available = ", ".join(m.value for m in cls)
        raise ValueError(f"Provider inconnu '{value}'. Providers disponibles : {available}")

    def __str__(self) -> str:
        return self.value


class TargetStatus(int, Enum):
    """État d'une cible du registre (stocké en entier)."""

    ENABLED = 0
    """À crawler ; les épisodes existants ne sont pas re-téléchargés."""
    DISABLED = 1
    """Désactivée temporairement."""
    COMPLETE = 2
    """Crawl complet terminé ; plus besoin de repasser."""

    @classmethod
    def parse(cls, value: str) -> "TargetStatus":
        key = (value or "").strip().upper()
        try:
            return cls[key]
        except KeyError:
            available = ", ".join(m.name.lower() for m in cls)
            raise ValueError(f"Statut inconnu '{value}'. Statuts disponibles : {available}") from None


class EpisodeKind(str, Enum):
    CONTENT = "content"
    NOTICE = "notice"


class EpisodeOutcome(str, Enum):
    """Issue du traitement d'un descripteur d'épisode pendant un run."""

    PERSISTED = "persisted"
    SKIPPED_EXISTING = "skipped_existing"
    SKIPPED_NOTICE = "skipped_notice"
    SKIPPED_UNAVAILABLE = "skipped_unavailable"
    FAILED = "failed"


@dataclass(frozen=True)
class Target:
    """Entrée du registre de crawl : (provider, external_id) unique."""

    provider: Provider
    external_id: str
    status: TargetStatus = TargetStatus.ENABLED
    last_attempt: str | None = None
    """Horodatage ISO UTC de la dernière tentative, None si jamais tentée."""


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass
class TitleRecord:
    provider: Provider
    external_id: str
    title: str | None = None


@dataclass
class EpisodeDescriptor:
    """Descripteur léger d'un épisode tel que listé par un adapteur."""

    seq: int | None
    """Séquence logique attribuée au crawl (1-based) ; None pour une notice."""
    native_id: str
    """Identifiant natif côté site (ex: nom d'épisode Lezhin, numéro Naver)."""
    name: str | None = None
    available_at: datetime.datetime | None = None
    """Date de mise à disposition (UTC) ; None = disponible."""
    kind: EpisodeKind = EpisodeKind.CONTENT

    @property
    def is_notice(self) -> bool:
        return self.kind == EpisodeKind.NOTICE

    def is_available(self, now: datetime.datetime) -> bool:
        """False si l'épisode est sous embargo strictement après `now`."""
        if self.available_at is None:
            return True
        return self.available_at <= now


@dataclass
class EpisodeListing:
    """Résultat de list_episodes : titre du comic + épisodes en ordre croissant."""

    title: str | None
    episodes: list[EpisodeDescriptor] = field(default_factory=list)


@dataclass
class EpisodeAssets:
    """Images d'un épisode dans l'ordre de livraison (+ titre lu sur la page épisode si dispo)."""

    images: list[bytes] = field(default_factory=list)
    title: str | None = None


@dataclass
class EpisodeRecord:
    provider: Provider
    comic_id: str
    seq: int
    title: str | None
    image_count: int
    created_at: str
    last_update: str


@dataclass
class AssetRecord:
    provider: Provider
    comic_id: str
    episode_seq: int
    image_seq: int
    data: bytes
    updated_at: str


@dataclass
class TargetResult:
    """Bilan d'une cible pour un run."""

    provider: Provider
    external_id: str
    success: bool
    message: str = ""
    skipped: bool = False
    title: str | None = None
    persisted: int = 0
    skipped_existing: int = 0
    skipped_notice: int = 0
    skipped_unavailable: int = 0
    failed: int = 0
    attempt_recorded: bool = False

    def count(self, outcome: EpisodeOutcome) -> None:
        if outcome == EpisodeOutcome.PERSISTED:
            self.persisted += 1
        elif outcome == EpisodeOutcome.SKIPPED_EXISTING:
            self.skipped_existing += 1
        elif outcome == EpisodeOutcome.SKIPPED_NOTICE:
            self.skipped_notice += 1
        elif outcome == EpisodeOutcome.SKIPPED_UNAVAILABLE:
            self.skipped_unavailable += 1
        else:
            self.failed += 1


@dataclass
class CrawlReport:
    """Métadonnées et bilans d'une exécution complète."""

    started_at: str
    targets: list[TargetResult] = field(default_factory=list)
    failed_providers: set[Provider] = field(default_factory=set)
    finished_at: str | None = None

    @property
    def persisted(self) -> int:
        return sum(t.persisted for t in self.targets)

    @property
    def failed_episodes(self) -> int:
        return sum(t.failed for t in self.targets)

    @property
    def failed_targets(self) -> list[TargetResult]:
        return [t for t in self.targets if not t.success and not t.skipped]
