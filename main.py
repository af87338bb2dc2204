from fastapi import FastAPI, HTTPException

from markdown_pdf.api import create_app

try:
    app = create_app(require_enabled=True)
except RuntimeError:
    app = FastAPI(title="Markdown PDF Converter", version="0.1.0")

    @app.get("/")
    async def api_disabled() -> dict[str, str]:
        raise HTTPException(
            status_code=503,
            detail="Local API disabled. Enable by setting enable_local_api = true in config.toml",
        )


if __name__ == "__main__":
    import uvicorn

    from markdown_pdf.config import load_config

    api_config = load_config().api
    uvicorn.run(app, host=api_config.host, port=api_config.port)
