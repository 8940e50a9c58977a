import os


class Constants:
    DEFAULT_RADIUS = 4      # 默认窗口半径，窗口边长 2r
    DEFAULT_IMAGE = "Lena_512.png"
    DEFAULT_FILTER_MODE = "rolling"
    MAX_WORKERS = 4


class Display:
    SCREEN_WIDTH = 1920
    SCREEN_HEIGHT = 1080
    WINDOW_TITLE = "rigel"
    QUIT_KEYS = (ord("q"), 27)
    POLL_INTERVAL_MS = 16   # 约60帧


class Path:
    # 使用相对于当前工作目录的路径
    OUTPUT_DIR = os.path.join(os.getcwd(), "output", "filtered")
    LOG_DIR = os.path.join(os.getcwd(), "logs")
    REPORT_FILENAME = "filter_report.txt"
