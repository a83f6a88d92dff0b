"""
Post-action Nodes
Queue actions for the caller to run after the LLM responds; they render nothing
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..node_base import Component
from ...context import RenderContext
from ...types import OpenUrlAction, PostAction, ReviewFileAction, RunCommandAction


class PostActionComponent(Component):
    """Adds one action to context.post_actions during the output pass"""

    def render(self, props: Dict[str, Any], value: Any, context: RenderContext) -> None:
        if not context.collecting:
            context.add_post_action(self.action(props))
        return None

    def action(self, props: Dict[str, Any]) -> PostAction:
        raise NotImplementedError


class ReviewFileProps(BaseModel):
    model_config = ConfigDict(extra="allow")

    file: str
    editor: Optional[str] = None


class ReviewFile(PostActionComponent):
    """Open `file` (in `editor`) for review"""
    schema = ReviewFileProps

    def action(self, props):
        return ReviewFileAction(file=props['file'], editor=props.get('editor'))


class OpenUrlProps(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str
    browser: Optional[str] = None


class OpenUrl(PostActionComponent):
    """Open `url` in a browser"""
    schema = OpenUrlProps

    def action(self, props):
        return OpenUrlAction(url=props['url'], browser=props.get('browser'))


class RunCommandProps(BaseModel):
    model_config = ConfigDict(extra="allow")

    command: str
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = None


class RunCommand(PostActionComponent):
    """Run a shell `command` (in `cwd`, with extra `env` variables)"""
    schema = RunCommandProps

    def action(self, props):
        return RunCommandAction(command=props['command'], cwd=props.get('cwd'), env=props.get('env'))


ACTION_COMPONENTS = [ReviewFile, OpenUrl, RunCommand]
