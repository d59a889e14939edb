"""Transport layer for the Volc SDK core.

Modules:
    cancellation: CancellationToken and run_cancellable
    clock: Clock protocol and RealClock
    request_handler: RequestHandler protocol and the httpx-based default adapter

Import from the submodules directly; this package does not re-export them.
"""
