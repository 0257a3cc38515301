from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request):
    store = getattr(request.app.state, "store", None)
    return {
        "status": "ready" if store is not None else "not_ready",
        "portfolio_file": str(store.path) if store is not None else None,
    }
