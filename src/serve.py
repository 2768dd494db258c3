import uvicorn

from utils import config


def main() -> None:
    uvicorn.run("web.app:app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
