"""
Entry point for the arbitrage engine.

Usage:
    python -m crossarb [config.yaml]
    crossarb [config.yaml]  # if installed via pip
"""

import asyncio
import logging
import signal
import sys


# Try to use uvloop for better performance
try:
    import uvloop

    uvloop.install()
    UVLOOP_ENABLED = True
except ImportError:
    UVLOOP_ENABLED = False


logger = logging.getLogger("crossarb")


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Args:
        argv: Command line arguments without the program name.

    Returns:
        Exit code (0 for success).
    """
    from pydantic import ValidationError

    from crossarb import __version__
    from crossarb.config.settings import load_settings
    from crossarb.core.engine import ArbitrageEngine, EngineStartError
    from crossarb.telemetry.logger import setup_logging

    args = sys.argv[1:] if argv is None else argv
    config_file = args[0] if args else None

    # Print banner
    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     CROSS-VENUE SPREAD ARBITRAGE v{__version__:<22}      ║
║                                                               ║
║     Apex Pro (home) / Bybit (hedge)                           ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    # Load settings
    try:
        settings = load_settings(config_file)
    except (ValidationError, OSError) as e:
        print(f"Configuration error: {e}")
        print("\nProvide credentials in config.yaml or the environment, e.g.:")
        print("  APEX__API_KEY, APEX__API_SECRET, APEX__PASSPHRASE")
        print("  BYBIT__API_KEY, BYBIT__API_SECRET")
        return 1

    strategy = settings.strategy
    print("Configuration:")
    print(f"  Symbols:        {settings.apex_symbol} / {settings.bybit_symbol}")
    print(f"  Min spread:     {strategy.min_spread}")
    print(f"  Order size:     {strategy.order_size}")
    print(f"  Max position:   {strategy.max_position}")
    print(f"  Hedge mode:     {'Enabled' if strategy.hedge_mode else 'Disabled'}")
    print(f"  TP / SL:        {strategy.take_profit} / {strategy.stop_loss}")
    print(f"  uvloop:         {'Enabled' if UVLOOP_ENABLED else 'Disabled'}")
    print()

    if not strategy.hedge_mode:
        print("⚠️  WARNING: Hedge mode disabled!")
        print("    Home-venue fills will not be offset.")
        print()

    async_logger = setup_logging(settings.log_level, settings.log_file)

    async def run_engine() -> int:
        engine = ArbitrageEngine(settings)

        try:
            await engine.start()
        except EngineStartError as e:
            logger.error(f"Engine failed to start: {e}")
            return 1

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, engine.request_stop)
            except NotImplementedError:
                # Windows: KeyboardInterrupt ends asyncio.run instead
                pass

        try:
            await engine.wait_stopped()
        finally:
            await engine.stop()
        return 0

    try:
        return asyncio.run(run_engine())
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 0
    finally:
        async_logger.stop()


if __name__ == "__main__":
    sys.exit(main())
