from .resolver import DEFAULT_POOL_LIMIT, POOL_CHANNEL, OptionsResolver

__all__ = ["OptionsResolver", "POOL_CHANNEL", "DEFAULT_POOL_LIMIT"]
