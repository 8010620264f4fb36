"""Pipeline module - Submit and retrieve phases of a translation request."""

from magicl10n.pipeline.orchestrator import LocalizationPipeline, PipelineResponse, diff_targets

__all__ = ["LocalizationPipeline", "PipelineResponse", "diff_targets"]
