"""
Metadata stage.

Binds the episode to the loaded video. Does no work of its own: it exists
so the user sees progress between processing and summarization.
"""

from app.services.stages.base import BaseStage, StageContext


class MetadataStage(BaseStage):
    """Always succeeds."""

    step_id = 3
    name = "metadata"

    async def execute(self, context: StageContext) -> None:
        return None
