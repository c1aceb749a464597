"""
dtnreport.core - Simulation-facing types

Host/Message references, the simulated clock and listener interfaces.
The dispatcher lives in dtnreport.core.dispatcher (it depends on the report
package, which depends on these types).
"""

from dtnreport.core.entities import Host, Message, SimClock
from dtnreport.core.listeners import UpdateListener, MessageListener

__all__ = ['Host', 'Message', 'SimClock', 'UpdateListener', 'MessageListener']
