from .resolve_episode import ResolutionPipeline, ResolveEpisodeUseCase

__all__ = ["ResolutionPipeline", "ResolveEpisodeUseCase"]
