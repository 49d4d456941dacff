#!/usr/bin/env python
"""
招聘管理系统后端启动脚本

用法:
    python run.py                    # 默认启动 (127.0.0.1:8000)
    python run.py -p 8080            # 指定端口
    python run.py --host 0.0.0.0     # 允许外网访问
    python run.py --reload           # 开启热重载
"""
import argparse
import shutil
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).parent
sys.path.insert(0, str(ROOT_DIR))

import uvicorn  # noqa: E402
from loguru import logger  # noqa: E402


def parse_args():
    """解析命令行参数"""
    parser = argparse.ArgumentParser(
        description="招聘管理系统后端启动脚本",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-p", "--port", type=int, default=8000, help="服务端口 (默认: 8000)")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="服务地址 (默认: 127.0.0.1)")
    parser.add_argument("--reload", action="store_true", help="开启热重载 (开发模式)")
    parser.add_argument("--workers", type=int, default=1, help="工作进程数 (默认: 1)")
    return parser.parse_args()


def check_env():
    """检查 .env 和数据目录"""
    env_file = ROOT_DIR / ".env"
    env_example = ROOT_DIR / ".env.example"

    if not env_file.exists():
        if env_example.exists():
            shutil.copy(env_example, env_file)
            logger.warning("未找到 .env 文件，已从 .env.example 创建，请根据需要修改配置")
        else:
            logger.warning("未找到 .env 文件，将使用默认配置")

    data_dir = ROOT_DIR / "data"
    if not data_dir.exists():
        data_dir.mkdir(parents=True)
        logger.info("数据目录已创建: {}", data_dir)


def main():
    args = parse_args()
    check_env()

    logger.info("启动服务: http://{}:{} (文档: /docs)", args.host, args.port)
    logger.info("热重载: {}, 工作进程: {}", "开启" if args.reload else "关闭", args.workers)

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=args.workers if not args.reload else 1,
        log_level="info",
    )


if __name__ == "__main__":
    main()
