# run.py
import os
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
# 실행 위치와 상관없이 이 파일 옆의 .env를 로드합니다.
load_dotenv(dotenv_path=os.path.join(basedir, '.env'))

from app import create_app

app = create_app()

if __name__ == '__main__':
    host = os.getenv('FLASK_RUN_HOST', '127.0.0.1')
    port = int(os.getenv('FLASK_RUN_PORT', 5000))
    debug = app.config.get('DEBUG', False)
    # SSE 스트림(/api/activity/stream)이 다른 요청을 막지 않도록 threaded로 실행합니다.
    app.run(host=host, port=port, debug=debug, threaded=True)
