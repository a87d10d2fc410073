from dotenv import load_dotenv

from server import server

load_dotenv()

server_app = server.handler


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:server_app",
        host="0.0.0.0",
        port=8000,
        log_level="info",
    )
