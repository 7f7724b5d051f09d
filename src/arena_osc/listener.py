"""
UDP OSC listener for Arena's OSC output.

Arena must be configured in Preferences > OSC to:
1. Enable OSC Output
2. Send to this machine's IP
3. Send to the port set as osc_rx_port
4. Use an output preset that includes transport positions
   (e.g. "Output All OSC Messages")
"""

import asyncio
import errno

from pythonosc import dispatcher
from pythonosc.osc_message_builder import BuildError, OscMessageBuilder
from pythonosc.osc_server import AsyncIOOSCUDPServer


class ArenaOscListener:
    """
    Receives Arena's OSC output on an AsyncIO UDP endpoint and sends '?'
    queries from the same socket.
    """

    def __init__(self, port: int, instance, listen_address: str = '0.0.0.0'):
        self.port = port
        self.instance = instance
        self.listen_address = listen_address
        self.transport = None
        self.protocol = None
        self.is_open = False

    def setup_dispatcher(self):
        """Every address goes to the same handler; routing happens in ArenaState."""
        disp = dispatcher.Dispatcher()
        disp.set_default_handler(self.process_message)
        return disp

    async def start(self) -> bool:
        """
        Bind the UDP endpoint on the running event loop.

        Returns:
            True if listening, False if the port could not be bound
        """
        if self.is_open:
            self.destroy()

        server = AsyncIOOSCUDPServer(
            (self.listen_address, self.port),
            self.setup_dispatcher(),
            asyncio.get_running_loop()
        )

        try:
            self.transport, self.protocol = await server.create_serve_endpoint()
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                self.instance.log('error', f"OSC Listener: Port {self.port} is already in use")
            else:
                self.instance.log('error', f"OSC Listener failed to start: {e}")
            return False

        self.is_open = True
        self.instance.log('info', f"OSC Listener active on port {self.port}")
        return True

    def process_message(self, address, *args):
        """Dispatcher callback - forward the first argument of each message."""
        if not address or not args:
            return
        value = args[0]
        if value is None:
            return
        self.instance.handle_osc_input(address, value, args)

    def send(self, address: str, args, host: str, port: int):
        """
        Send an OSC message FROM this listener's port.

        Arena answers '?' queries to the sender's port, so queries must leave
        from the port we are listening on.
        """
        if self.transport is None or not self.is_open:
            self.instance.log('warn', "OSC Listener: Cannot send, port not open")
            return

        try:
            builder = OscMessageBuilder(address=address)
            for arg in args:
                builder.add_arg(arg)
            self.transport.sendto(builder.build().dgram, (host, port))
            self.instance.log('debug', f"OSC Listener: Sent to {host}:{port} -> {address}")
        except (OSError, BuildError) as e:
            self.instance.log('error', f"OSC Listener send error: {e}")

    def destroy(self):
        if self.transport is not None:
            self.transport.close()
            self.transport = None
            self.protocol = None
        self.is_open = False

    def is_active(self) -> bool:
        return self.is_open
