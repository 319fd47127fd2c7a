"""concore: filesystem mailbox coordination for independently scheduled control nodes.

Nodes exchange numeric vectors through files laid out as
``<base>/<port>/<name>``. Every file holds one message ``[t, v1, ..., vn]``
whose first element is a simulated time. Readers poll until a channel has
content and merge its timestamp into their own clock; writers stamp messages
with the current time plus an explicit delta.

Main Components:
    - ChannelStore: Session state (simulated clock, delay, retry count, convergence text)
    - Mailbox: Blocking channel reads, atomic channel writes and the ``unchanged`` barrier
    - decode / encode: Payload codec tolerant of NumPy scalar and array reprs
    - PIDNode: Stateful PID controller
    - run_batch / reactive_loop / run_control_loop: Node execution drivers
    - load_graph: GraphML workflow loader producing NodeConfig entries
    - ConcoreConfig: Configuration with all tunable parameters

Quick Start:
    >>> from concore import ChannelStore, Mailbox, PIDNode, run_batch
    >>>
    >>> mailbox = Mailbox(ChannelStore(inpath="./in", outpath="./out"))
    >>> u = mailbox.initval("[0.0, 0.0]")
    >>> mailbox.write(1, "u", [1.5], delta=1)
    >>>
    >>> node = PIDNode("pid", kp=2.0, ki=0.5, kd=0.1)
    >>> run_batch(node, [5.0, 4.0, 3.0])
"""

from .clock import ChannelStore
from .config import ConcoreConfig, RetryPolicy
from .engine import StepRecord, reactive_loop, run_batch, run_control_loop, step
from .errors import ChannelAccessError, ChannelTimeout, ConcoreError, DivisionByZero, MalformedPayload
from .graph import NodeConfig, load_graph
from .mailbox import Mailbox, channel_path
from .node import PIDNode
from .payload import decode, encode, sanitize
from .triggers import FileChangeTrigger, SequenceTrigger, TriggerSource

__all__ = [
    "ChannelStore",
    "ConcoreConfig",
    "RetryPolicy",
    "StepRecord",
    "reactive_loop",
    "run_batch",
    "run_control_loop",
    "step",
    "ChannelAccessError",
    "ChannelTimeout",
    "ConcoreError",
    "DivisionByZero",
    "MalformedPayload",
    "NodeConfig",
    "load_graph",
    "Mailbox",
    "channel_path",
    "PIDNode",
    "decode",
    "encode",
    "sanitize",
    "FileChangeTrigger",
    "SequenceTrigger",
    "TriggerSource",
]
