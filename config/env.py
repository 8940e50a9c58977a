import os
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

from config.constant import Constants, Display, Path


class AppSettings(BaseSettings):
    """
    应用配置
    """

    app_env: str = 'dev'
    app_name: str = 'rigel'
    image_path: str = Constants.DEFAULT_IMAGE
    window_radius: int = Constants.DEFAULT_RADIUS
    filter_mode: Literal["rolling", "integral", "brute"] = Constants.DEFAULT_FILTER_MODE
    screen_width: int = Display.SCREEN_WIDTH
    screen_height: int = Display.SCREEN_HEIGHT
    window_title: str = Display.WINDOW_TITLE
    log_dir: str = Path.LOG_DIR
    workers: int = 1


class GetConfig:
    """
    获取配置
    """

    def __init__(self, env: str | None = None):
        self.env = env
        self.load_env_file(env)

    @lru_cache()
    def get_app_config(self):
        """
        获取应用配置
        """
        # 实例化应用配置模型
        return AppSettings()

    @staticmethod
    def load_env_file(env: str | None = None) -> str:
        """
        按运行环境加载 .env 文件，返回文件名
        """
        # 设置环境变量，如果未指定运行环境，默认APP_ENV为dev
        if env:
            os.environ['APP_ENV'] = env
        run_env = os.environ.get('APP_ENV', '')
        # 运行环境未指定时默认加载.env.dev
        env_file = '.env.dev'
        if run_env != '':
            env_file = f'.env.{run_env}'
        # 已存在的环境变量优先
        load_dotenv(env_file, override=False)
        return env_file


@lru_cache()
def get_settings(env: str | None = None) -> AppSettings:
    """Settings for the given run environment, cached per environment."""
    return GetConfig(env).get_app_config()
