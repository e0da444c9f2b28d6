import json
from datetime import date

import pytest

from config.loader import DEFAULT_WEIGHTS
from domain.activities import ActivitySnapshot, ActivityStatus
from domain.weights import WeightParameter


@pytest.fixture
def sample_weights():
    return [
        WeightParameter(
            key=item["key"],
            label=item["label"],
            description=item["description"],
            value=item["value"],
        )
        for item in DEFAULT_WEIGHTS
    ]


@pytest.fixture
def sample_activities():
    return [
        ActivitySnapshot(
            id=2,
            platform="美团",
            name="周末闪促",
            discount="9折",
            commission_rate="10%",
            start_date=date(2026, 11, 1),
            end_date=date(2026, 11, 30),
            status=ActivityStatus.UPCOMING,
            room_types=("标准双床房",),
            minimum_stay=1,
        ),
        ActivitySnapshot(
            id=1,
            platform="携程",
            name="暑期特惠",
            discount="8.5折",
            commission_rate="8%",
            start_date=date(2026, 7, 1),
            end_date=date(2026, 8, 31),
            status=ActivityStatus.ACTIVE,
            room_types=("豪华大床房", "行政套房"),
            minimum_stay=2,
            tag="热门",
        ),
        ActivitySnapshot(
            id=3,
            platform="飞猪",
            name="春节预售",
            discount="7折",
            commission_rate="12%",
            status=ActivityStatus.ENDED,
        ),
    ]


@pytest.fixture
def model_reply():
    """A well-formed reply with two strategies claiming the recommendation."""
    return json.dumps({
        "strategies": [
            {
                "name": "全面参与策略",
                "description": "参与所有进行中和即将开始的活动，最大化曝光。",
                "isRecommended": False,
                "score": 72,
                "advantages": ["曝光最大化", "订单量提升"],
                "disadvantages": ["佣金成本上升"],
                "steps": ["报名携程暑期特惠", "报名美团周末闪促"],
                "notes": ["关注价格一致性"],
                "activityIds": [1, 2],
                "metrics": {
                    "projectedGrowth": {"value": "+25%", "percentage": 75, "type": "流量"},
                    "complexity": {"value": "高", "percentage": 70},
                },
            },
            {
                "name": "精选参与策略",
                "description": "只参与佣金较低的携程活动，控制成本。",
                "isRecommended": True,
                "score": 85,
                "advantages": ["成本可控"],
                "disadvantages": ["曝光有限"],
                "steps": ["报名携程暑期特惠"],
                "notes": ["监控转化率"],
                "activityIds": [1, 99],
            },
            {
                "name": "观望策略",
                "description": "暂不参与，观察竞品动向后再决定。",
                "isRecommended": True,
                "score": 40,
                "advantages": ["零成本"],
                "disadvantages": ["错失流量"],
                "steps": ["监控竞品"],
                "notes": [],
                "activityIds": [],
            },
        ]
    }, ensure_ascii=False)
