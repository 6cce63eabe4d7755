"""Timelines of timestamped points and the packet protocol that carries them."""

from .decoder import StreamDecoder  # noqa: F401
from .errors import (  # noqa: F401
    FlowwError,
    PacketDecodeError,
    PacketEncodeError,
    SourceParseError,
)
from .packets import (  # noqa: F401
    HEADER_SIZE,
    MAX_PAYLOAD_SIZE,
    MAGIC,
    VERSION,
    Msg,
    Packet,
    PointPacket,
    Track,
    batch_size,
    decode,
    encode,
)
from .point import Point, Timed  # noqa: F401
from .sheet import (  # noqa: F401
    Sheet,
    dump_sheet,
    load_sheet,
    load_sheet_file,
    save_sheet,
    sheet_from_packets,
)
from .timeline import Timeline  # noqa: F401
