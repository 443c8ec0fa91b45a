# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at http://mozilla.org/MPL/2.0/.

"""Sample chat phrases used as System Push content."""

import random
from typing import Sequence

PHRASES: tuple[str, ...] = (
    "你好啊，今天过得怎么样？",
    "最近在看什么好看的电视剧吗？",
    "今天天气真不错，适合出去走走。",
    "吃饭了吗？",
    "工作好忙啊，感觉快累垮了。",
    "周末有什么计划吗？",
    "哈哈，这个笑话太搞笑了！",
    "我刚学会做一道新菜，味道还不错。",
    "你去过上海吗？那边的外滩很漂亮。",
    "最近压力有点大，想找人聊聊天。",
    "听说新上映的电影很不错，要不要一起去看？",
    "今天学到了一个新知识，感觉很有意思。",
    "你的新发型真好看！",
    "明天一起去爬山吧？",
    "这个项目什么时候能完成？",
)


def pick_phrase(rng: random.Random, corpus: Sequence[str] = PHRASES) -> str:
    """Return a phrase chosen uniformly at random from `corpus`."""
    return rng.choice(corpus)  # nosec
