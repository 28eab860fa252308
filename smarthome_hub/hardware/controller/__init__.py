from smarthome_hub.hardware.controller.line_protocol import format_line, parse_datagram, parse_line
from smarthome_hub.hardware.controller.udp_controller import UdpControllerAdapter

__all__ = ["UdpControllerAdapter", "format_line", "parse_datagram", "parse_line"]
