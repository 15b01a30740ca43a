# 持久化存储键（整个身份列表作为一个 JSON 数组存放在该键下）
STORAGE_KEY = "bioauth_users"

# 默认数据目录（JsonFilePersistence 在其中写入 <STORAGE_KEY>.json）
DATA_DIR = "data/faceauth"

# 欧氏距离阈值：距离 <= 阈值 视为同一人
FACE_MATCH_THRESHOLD = 0.6

# 外部模型输出的 descriptor 维度（全库统一）
DESCRIPTOR_DIM = 128

# 未匹配时返回的标签
UNKNOWN_LABEL = "unknown"

# 空库时返回的哨兵距离
EMPTY_STORE_DISTANCE = 1.0
