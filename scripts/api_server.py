#!/usr/bin/env python
"""
IP Config API 서버 실행 스크립트

사용법:
    # 개발 모드 (핫 리로드)
    python scripts/api_server.py --env dev --reload

    # 프로덕션 모드
    python scripts/api_server.py --env prod --content-root /srv/ip-config

    # 커스텀 포트
    python scripts/api_server.py --port 8080
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import uvicorn
from dotenv import load_dotenv


def setup_logging(level: str = "INFO") -> None:
    """로깅 설정"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def load_env_file(env: str) -> None:
    """환경별 .env 파일 로드"""
    env_files = [
        PROJECT_ROOT / f".env.{env}",
        PROJECT_ROOT / ".env.local",
        PROJECT_ROOT / ".env",
    ]

    for env_file in env_files:
        if env_file.exists():
            load_dotenv(env_file)
            print(f"[Config] 환경 파일 로드: {env_file}")
            break


def build_parser() -> argparse.ArgumentParser:
    """명령행 인자 파서"""
    parser = argparse.ArgumentParser(
        description="IP Config API 서버",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
예시:
    # 개발 모드
    python scripts/api_server.py --env dev --reload

    # 프로덕션 모드
    python scripts/api_server.py --env prod --content-root /srv/ip-config
        """,
    )

    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="실행 환경 (기본: dev)",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="바인딩 호스트 (기본: 환경변수 API_HOST 또는 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="바인딩 포트 (기본: 환경변수 API_PORT 또는 8000)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="워커 프로세스 수 (기본: 1, 프로세스마다 설정 파일을 따로 감시)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="코드 변경 시 자동 리로드 (개발 모드용)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="로그 레벨",
    )
    parser.add_argument(
        "--content-root",
        default=None,
        help="콘텐츠 루트 (설정 파일: <root>/Data/config.json, 기본: 현재 디렉토리)",
    )
    return parser


def main() -> None:
    """메인 함수"""
    args = build_parser().parse_args()

    # 환경 설정
    os.environ["ENV"] = args.env
    load_env_file(args.env)

    # 로깅 설정
    log_level = args.log_level or ("DEBUG" if args.env == "dev" else "INFO")
    setup_logging(log_level)

    host = args.host or os.getenv("API_HOST", "0.0.0.0")
    port = args.port or int(os.getenv("API_PORT", "8000"))
    workers = max(1, args.workers)
    reload_enabled = args.reload

    if args.content_root:
        os.environ["CONTENT_ROOT"] = str(Path(args.content_root).resolve())

    print(f"""
IP Config API 서버
  환경: {args.env}
  주소: http://{host}:{port}
  워커: {workers}개
  리로드: {'ON' if reload_enabled else 'OFF'}
  콘텐츠 루트: {os.getenv('CONTENT_ROOT', os.getcwd())}
    """)

    uvicorn_config = {
        "app": "api.server:app",
        "host": host,
        "port": port,
        "log_level": log_level.lower(),
        "reload": reload_enabled,
    }

    # 멀티 워커 (리로드와 동시 사용 불가)
    if workers > 1 and not reload_enabled:
        uvicorn_config["workers"] = workers

    # 코드 리로드 감시 디렉토리 (Data/ 는 제외)
    if reload_enabled:
        uvicorn_config["reload_dirs"] = [
            str(PROJECT_ROOT / "api"),
            str(PROJECT_ROOT / "config"),
            str(PROJECT_ROOT / "lib"),
        ]

    try:
        uvicorn.run(**uvicorn_config)
    except KeyboardInterrupt:
        print("\n[Server] 서버 종료")


if __name__ == "__main__":
    main()
