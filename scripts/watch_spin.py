import asyncio
import json
import sys

import websockets


async def watch_spin(uri: str):
    """
    Connects to the WebSocket, requests a spin and prints every effect
    until the spin completes.
    """
    try:
        async with websockets.connect(uri) as websocket:
            print("WebSocket connection established.")

            state = json.loads(await websocket.recv())
            print(f"State: {state}")

            await websocket.send(json.dumps({"type": "spin"}))
            print("Sent: spin")

            while True:
                message = json.loads(await websocket.recv())
                if message["type"] == "reel_placeholder":
                    continue
                print(f"Received: {message}")
                if message["type"] in ("spin_complete", "spin_rejected"):
                    break
    except Exception as e:
        print(f"An error occurred: {e}")


if __name__ == "__main__":
    uri = sys.argv[1] if len(sys.argv) > 1 else "ws://localhost:8000/ws"
    asyncio.run(watch_spin(uri))
