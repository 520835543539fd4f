# run.py
"""
Repo-level runner:
- python run.py api          -> starts the FastAPI scene server (uvicorn)
- python run.py "your text"  -> runs the package module mimic.main
"""
import os
import subprocess
import sys


def run_api():
    print("Starting scene API at http://127.0.0.1:8000 ...")
    return subprocess.call([sys.executable, "-m", "uvicorn", "web_app.api:app", "--reload"])


def run_main_with_args(args):
    repo_root = os.path.dirname(os.path.abspath(__file__))
    cmd = [sys.executable, "-m", "mimic.main"] + args
    print(f"▶ Running: {' '.join(cmd)} (cwd={repo_root})")
    return subprocess.call(cmd, cwd=repo_root)


def main():
    if len(sys.argv) < 2:
        print("Usage:\n  python run.py api\n  python run.py \"the water cycle\"")
        return 1
    if sys.argv[1].lower() == "api":
        return run_api()
    return run_main_with_args(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
