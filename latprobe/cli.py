"""
latprobe - TCP/UDP/ICMP latency probe
Command line entry point: runs an echo server or a probing client.
"""

import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .core.config import OUTPUT_KINDS, Config
from .core.errors import ProbeError
from .core.logger import parse_level, setup_logging
from .core.models import Endpoint, Mode, Proto, create_frame, resolve_endpoint
from .output import create_sink
from .pacing import PacingClock
from .protocol import IcmpSession, TcpEchoServer, TcpSession, UdpEchoServer, UdpSession
from .runner import ProbeRunner


def signal_handler(signum, frame):
    """Handle shutdown signals."""
    logging.info(f"Received signal {signum}, shutting down...")
    sys.exit(0)


@click.command()
@click.version_option(__version__, prog_name="latprobe")
@click.argument('mode', type=click.Choice([m.value for m in Mode]))
@click.argument('proto', type=click.Choice([p.value for p in Proto]))
@click.argument('path', metavar='IP(ICMP)|IP:PORT')
@click.option('--timeout', '-T', type=float, help='Socket timeout in seconds [default: 30]')
@click.option('--interval', '-I', type=float, help='Probe interval in seconds [default: 1.0]')
@click.option('--frame-size', '-S', type=int, help='Frame size (TCP/UDP) [default: 1500]')
@click.option('--latency-warn', '-W', type=float, help='Warn when latency reaches this many seconds')
@click.option('--output', '-O', 'output_kind', type=click.Choice(OUTPUT_KINDS),
              help='Output kind [default: regular]')
@click.option('--output-options', help='Output options, e.g. path=host:port,oid=...,units=ms')
@click.option('--config', '-c', type=click.Path(dir_okay=False),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(mode: str, proto: str, path: str, timeout: Optional[float],
         interval: Optional[float], frame_size: Optional[int],
         latency_warn: Optional[float], output_kind: Optional[str],
         output_options: Optional[str], config: Optional[str], verbose: bool):
    """latprobe - TCP/UDP/ICMP latency probe"""

    # Setup signal handlers
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        cfg = Config()
        if config:
            config_path = Path(config)
            if not config_path.exists():
                click.echo(f"Error: Configuration file {config} not found", err=True)
                sys.exit(1)
            cfg = Config.from_file(config_path)

        cfg = cfg.merge(
            mode=Mode(mode),
            proto=Proto(proto),
            path=path,
            timeout=timeout,
            interval=interval,
            frame_size=frame_size,
            latency_warn=latency_warn,
            output_kind=output_kind,
            output_options=output_options,
        )
        cfg.validate()

        log_level = logging.DEBUG if verbose else parse_level(cfg.logging.level)
        setup_logging(cfg.logging, cfg.output.kind, log_level)

        if cfg.probe.mode == Mode.SERVER:
            run_server(cfg)
        else:
            run_client(cfg)

    except KeyboardInterrupt:
        sys.exit(0)
    except ProbeError as e:
        click.echo(f"Error: {e}", err=True)
        if verbose:
            logging.exception("Full traceback:")
        sys.exit(1)


def create_session(endpoint: Endpoint, frame: Optional[bytes], timeout: float):
    """Build the client session for the endpoint's transport."""
    if endpoint.proto == Proto.TCP:
        return TcpSession(endpoint, frame, timeout)
    if endpoint.proto == Proto.UDP:
        return UdpSession(endpoint, frame, timeout)
    return IcmpSession(endpoint, timeout)


def run_server(config: Config):
    """Run the echo server until terminated."""
    probe = config.probe
    endpoint = resolve_endpoint(probe.path, probe.proto)

    if probe.proto == Proto.TCP:
        server = TcpEchoServer(endpoint.address, probe.timeout)
    else:
        server = UdpEchoServer(endpoint.address)

    try:
        server.serve_forever()
    finally:
        server.stop()


def run_client(config: Config):
    """Probe the target until terminated."""
    probe = config.probe
    endpoint = resolve_endpoint(probe.path, probe.proto)
    frame = None if probe.proto == Proto.ICMP else create_frame(probe.frame_size)

    session = create_session(endpoint, frame, probe.timeout)
    sink = create_sink(
        config.output.kind,
        config.output.options,
        endpoint,
        frame_size=len(frame) if frame is not None else None,
        latency_warn=probe.latency_warn,
    )
    logging.debug(f"Probing {endpoint} ({endpoint.proto}) every {probe.interval}s")

    try:
        ProbeRunner(session, sink, PacingClock(probe.interval)).run()
    finally:
        sink.close()


if __name__ == '__main__':
    main()
