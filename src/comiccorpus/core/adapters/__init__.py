"""Adapters éditeurs ; l'import enregistre les adapters de chaque Provider."""

from comiccorpus.core.adapters.base import AdapterRegistry, ProviderAdapter
from comiccorpus.core.adapters.lezhin import LezhinAdapter
from comiccorpus.core.adapters.naver import NaverAdapter

__all__ = ["AdapterRegistry", "LezhinAdapter", "NaverAdapter", "ProviderAdapter"]
