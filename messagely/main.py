import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pythonjsonlogger import jsonlogger

from .auth import TokenService, make_password_context
from .config import Settings
from .errors import register_exception_handlers
from .metrics import observe_request, render_metrics
from .models import init_models, make_engine, make_sessionmaker
from .routes import router

logger = logging.getLogger('messagely')


def setup_logging(level: str) -> None:
    # setup structured logging once per process
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(level)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Messagely API", version="0.1.0")
    app.state.settings = settings
    app.state.engine = make_engine(settings)
    app.state.db = make_sessionmaker(app.state.engine)
    app.state.pwd_ctx = make_password_context(settings.BCRYPT_WORK_FACTOR)
    app.state.tokens = TokenService(
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=['*'],
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_exception_handlers(app)
    app.include_router(router)

    @app.get('/healthz')
    async def healthz():
        return {'status': 'ok'}

    @app.get('/metrics')
    async def metrics():
        payload, content_type = render_metrics()
        return Response(content=payload, media_type=content_type)

    @app.middleware('http')
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        logger.info({'msg': 'request_start', 'method': request.method, 'path': request.url.path})
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        except Exception:
            logger.exception({'msg': 'request_failed', 'method': request.method, 'path': request.url.path})
            raise
        finally:
            elapsed = time.perf_counter() - start
            route = request.scope.get('route')
            observe_request(request.method, getattr(route, 'path', 'unmatched'), status, elapsed)
            logger.info({
                'msg': 'request_end',
                'method': request.method,
                'path': request.url.path,
                'status': status,
                'latency_ms': round(elapsed * 1000, 2),
                'user': getattr(request.state, 'user', None),
            })

    @app.on_event("startup")
    async def startup():
        if settings.CREATE_TABLES:
            await init_models(app.state.engine)
            logger.info({'msg': 'tables_created'})

    @app.on_event("shutdown")
    async def shutdown():
        await app.state.engine.dispose()

    return app


app = create_app()
