"""命令行入口：本地人脸身份库（注册 / 验证 / 匹配 / 列表 / 清空）。

descriptor 由外部人脸模型提取，以 JSON 数组或 .npy 文件传入。
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from faceauth.config import DATA_DIR, DESCRIPTOR_DIM, FACE_MATCH_THRESHOLD, STORAGE_KEY
from faceauth.errors import DescriptorLengthMismatch, DuplicateEmail, FaceAuthError, InvalidEnrollment
from faceauth.face.service import FaceAuth, FaceAuthConfig
from faceauth.utils.log import get_logger
from faceauth.utils.serializer import serialize_match, serialize_public_identity

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_FAULT = 2


def load_descriptor_file(path: str) -> np.ndarray:
    fp = Path(path)
    if fp.suffix.lower() == ".npy":
        return np.load(str(fp), allow_pickle=False).astype(np.float32)
    data = json.loads(fp.read_text(encoding="utf-8"))
    # Accept either a bare array or {"descriptor": [...]}.
    if isinstance(data, dict):
        data = data.get("descriptor")
    if not isinstance(data, list):
        raise ValueError(f"{fp}: expected a JSON array of numbers")
    return np.asarray(data, dtype=np.float32)


def _emit(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="本地人脸身份库：基于 descriptor 的注册与登录验证")
    parser.add_argument("--data-dir", "-d", default=DATA_DIR, help=f"身份库目录（默认 {DATA_DIR}）")
    parser.add_argument("--storage-key", default=STORAGE_KEY, help="持久化键名")
    parser.add_argument("--dim", type=int, default=DESCRIPTOR_DIM, help=f"descriptor 维度（默认 {DESCRIPTOR_DIM}）")
    parser.add_argument(
        "--threshold", "-t", type=float, default=FACE_MATCH_THRESHOLD, help="欧氏距离阈值（默认 0.6）"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("enroll", help="注册新身份")
    p.add_argument("--name", required=True, help="显示名称")
    p.add_argument("--email", required=True, help="邮箱（唯一键）")
    p.add_argument("--descriptor", required=True, help="descriptor 文件（.json / .npy）")

    p = sub.add_parser("verify", help="登录验证：人脸需与输入邮箱对应")
    p.add_argument("--email", required=True, help="登录邮箱")
    p.add_argument("--descriptor", required=True, help="descriptor 文件（.json / .npy）")

    p = sub.add_parser("match", help="仅做最近邻匹配")
    p.add_argument("--descriptor", required=True, help="descriptor 文件（.json / .npy）")

    sub.add_parser("list", help="列出已注册身份")

    p = sub.add_parser("clear", help="清空身份库")
    p.add_argument("--yes", action="store_true", help="确认清空")

    return parser


def run(args: argparse.Namespace) -> int:
    auth = FaceAuth(
        FaceAuthConfig(
            data_dir=args.data_dir,
            storage_key=args.storage_key,
            descriptor_dim=int(args.dim),
            threshold=float(args.threshold),
        )
    ).load()

    if args.command == "enroll":
        identity = auth.enroll(args.name, args.email, load_descriptor_file(args.descriptor))
        _emit(serialize_public_identity(identity))
        return EXIT_OK

    if args.command == "verify":
        v = auth.verify(args.email, load_descriptor_file(args.descriptor))
        payload = {"status": v.status}
        if v.match is not None:
            payload["match"] = serialize_match(v.match)
        if v.identity is not None:
            payload["identity"] = serialize_public_identity(v.identity)
        _emit(payload)
        return EXIT_OK if v.ok else EXIT_REJECTED

    if args.command == "match":
        result = auth.match(load_descriptor_file(args.descriptor))
        _emit(serialize_match(result))
        return EXIT_OK if result.is_match else EXIT_REJECTED

    if args.command == "list":
        _emit([serialize_public_identity(i) for i in auth.list_identities()])
        return EXIT_OK

    if args.command == "clear":
        if not args.yes:
            logger.warning("清空操作需要 --yes 确认")
            return EXIT_REJECTED
        auth.clear_all()
        _emit({"cleared": True})
        return EXIT_OK

    raise ValueError(f"unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return run(args)
    except (DuplicateEmail, InvalidEnrollment) as e:
        logger.warning(f"注册失败: {e}")
        return EXIT_REJECTED
    except DescriptorLengthMismatch as e:
        logger.error(f"descriptor 维度错误: {e}")
        return EXIT_FAULT
    except FaceAuthError as e:
        logger.error(f"操作失败: {e}")
        return EXIT_FAULT
    except (OSError, ValueError) as e:
        logger.error(f"输入无效: {e}")
        return EXIT_FAULT


if __name__ == "__main__":
    sys.exit(main())
