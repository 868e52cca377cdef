"""
Navigate stage.

Points the application at the summarized video and asks it to show the
summary tab.
"""

from app.models.schemas import SUMMARY_TAB, UrlType
from app.services.pipeline.state import SetTabOverride
from app.services.stages.base import BaseStage, StageContext


class NavigateStage(BaseStage):
    """Always succeeds.

    Side effects:
        shared.url_type = video, shared.current_url = episode url,
        SET_TAB_OVERRIDE("ai-summary")
    """

    step_id = 5
    name = "navigate"

    async def execute(self, context: StageContext) -> str:
        context.shared.set_url_type(UrlType.VIDEO)
        context.shared.set_current_url(context.episode.url)
        context.dispatch(SetTabOverride(tab=SUMMARY_TAB))
        return SUMMARY_TAB
