"""
Runtime Nodes
Values taken from the runtime snapshot of the current pass
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..node_base import Component
from ...context import RenderContext


class RuntimeValue(Component):
    """Resolves to one key of env.runtime; rendered as its string form"""

    key = ""

    def resolve(self, props: Dict[str, Any], context: RenderContext) -> Any:
        return context.env.runtime.get(self.key)


class UUID(RuntimeValue):
    key = "uuid"


class Timestamp(RuntimeValue):
    """Milliseconds since the epoch at the start of the pass"""
    key = "timestamp"


class Hostname(RuntimeValue):
    key = "hostname"


class Username(RuntimeValue):
    key = "username"


class Cwd(RuntimeValue):
    key = "cwd"


class DateTimeProps(BaseModel):
    model_config = ConfigDict(extra="allow")

    # strftime pattern
    format: Optional[str] = None


class DateTime(Component):
    """
    Date and time of the pass

    Properties:
        format: strftime pattern applied in UTC (default: "<date> <time>" from the runtime snapshot)
    """

    schema = DateTimeProps

    def resolve(self, props: Dict[str, Any], context: RenderContext) -> str:
        runtime = context.env.runtime
        if props.get('format'):
            timestamp = runtime.get('timestamp')
            moment = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc) if timestamp else datetime.now(timezone.utc)
            return moment.strftime(props['format'])
        return f"{runtime.get('date', '')} {runtime.get('time', '')}".strip()


RUNTIME_COMPONENTS = [UUID, Timestamp, DateTime, Hostname, Username, Cwd]
