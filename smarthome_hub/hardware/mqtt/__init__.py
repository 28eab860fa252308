from smarthome_hub.hardware.mqtt.client_factory import LastWill, create_mqtt_client
from smarthome_hub.hardware.mqtt.mqtt_broker_adapter import MqttBrokerAdapter

__all__ = ["LastWill", "MqttBrokerAdapter", "create_mqtt_client"]
