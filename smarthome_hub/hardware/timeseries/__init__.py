from smarthome_hub.hardware.timeseries.influxdb_adapter import InfluxDbAdapter, build_point

__all__ = ["InfluxDbAdapter", "build_point"]
