"""
Device Schemas
==============

Pydantic models for adapter connection options and for the data the adapters
put on the wire.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# Connection options
# ============================================================================


class ControllerOptions(BaseModel):
    """Connection options for the UDP home-automation controller."""

    host: str = Field(..., min_length=1, description="Controller hostname or IP")
    virtual_input_port: int = Field(..., ge=0, le=65535, description="Port the hub sends to")
    virtual_output_port: int = Field(..., ge=0, le=65535, description="Port the hub binds and listens on")


class MqttBrokerOptions(BaseModel):
    """Connection options for the MQTT broker."""

    host: str = Field(..., min_length=1, description="Broker hostname or IP")
    port: int = Field(default=1883, ge=1, le=65535)
    topic: str = Field(..., description="Topic prefix for every message published by the hub")
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = ""
    keepalive: int = Field(default=60, gt=0)

    @field_validator("topic")
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class InfluxDbOptions(BaseModel):
    """Connection options for the InfluxDB time-series store."""

    host: str = Field(..., min_length=1, description="InfluxDB hostname or IP")
    port: int = Field(default=8086, ge=1, le=65535)
    database: str = Field(..., min_length=1, description="Database (v1 compatibility bucket)")
    username: str = ""
    password: str = ""
    timeout_ms: int = Field(default=5000, gt=0, description="Bound for the ping probe and writes")


# ============================================================================
# Wire data
# ============================================================================


class DeviceMessage(BaseModel):
    """A ``{thing, property, value}`` triple from the controller line protocol."""

    model_config = ConfigDict(frozen=True)

    thing: str
    property: str
    value: str


class MeasurementEnvelope(BaseModel):
    """JSON body published for each MQTT measurement."""

    ts: int = Field(..., description="Epoch milliseconds at send time")
    val: Any
    loc: str = ""
    desc: str = ""


class PublishedMessage(BaseModel):
    """What the MQTT adapter handed to the client for one ``send``."""

    topic: str
    payload: MeasurementEnvelope
    retain: bool = False
    qos: int = Field(default=2, ge=0, le=2)

    def encode(self) -> str:
        return self.payload.model_dump_json()


class InfluxMeasurement(BaseModel):
    """One single-field point written under ``measurement``."""

    measurement: str
    fields: dict[str, Any]
    tags: dict[str, str] = Field(default_factory=dict)
