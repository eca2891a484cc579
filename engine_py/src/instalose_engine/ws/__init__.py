"""
HTTP and WebSocket transport for the game.

The ASGI app lives in `instalose_engine.ws.server`.
"""
