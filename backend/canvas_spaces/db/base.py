from sqlalchemy.orm import declarative_base

Base = declarative_base()

# 모델 import는 canvas_spaces.db.models 에서 일괄 수행
# 순환 import 방지를 위해 여기서는 import하지 않음
