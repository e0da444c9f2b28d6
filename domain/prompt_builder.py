import json
from typing import Any, Dict, Iterable, List, Mapping, Optional

from domain.activities import ActivitySnapshot
from domain.errors import EmptyInputError
from domain.strategies import StrategyPreference
from domain.weights import WeightParameter

OUTPUT_SCHEMA = """{
  "strategies": [
    {
      "name": "策略名称",
      "description": "策略描述",
      "isRecommended": true,
      "score": 85,
      "advantages": ["优势1", "优势2"],
      "disadvantages": ["劣势1", "劣势2"],
      "steps": ["步骤1", "步骤2"],
      "notes": ["注意事项1", "注意事项2"],
      "activityIds": [1, 2],
      "metrics": {
        "projectedGrowth": {"value": "+X%", "percentage": 70, "type": "收益/流量/平衡"},
        "complexity": {"value": "低/中/高", "percentage": 30}
      }
    }
  ]
}"""


class PromptBuilder:
    """
    Serializes weights and activities into the strategy generation prompt.

    Output is deterministic: weights are ordered by key, activities by id,
    and every record is written with a fixed field order.
    """

    def __init__(self, preference_texts: Optional[Mapping[str, str]] = None):
        self.preference_texts = dict(preference_texts or {})

    @staticmethod
    def weight_to_dict(weight: WeightParameter) -> Dict[str, Any]:
        return {
            "key": weight.key,
            "label": weight.label,
            "description": weight.description,
            "value": weight.value,
        }

    @staticmethod
    def activity_to_dict(activity: ActivitySnapshot) -> Dict[str, Any]:
        return {
            "id": activity.id,
            "platform": activity.platform,
            "name": activity.name,
            "discount": activity.discount,
            "commissionRate": activity.commission_rate,
            "startDate": activity.start_date.isoformat() if activity.start_date else None,
            "endDate": activity.end_date.isoformat() if activity.end_date else None,
            "status": activity.status.value,
            "roomTypes": list(activity.room_types),
            "minimumStay": activity.minimum_stay,
            "tag": activity.tag,
        }

    def build(
        self,
        weights: Iterable[WeightParameter],
        activities: Iterable[ActivitySnapshot],
        preference: StrategyPreference = StrategyPreference.BALANCED
    ) -> str:
        """
        Build the prompt text.

        Raises:
            EmptyInputError: no activities were given
        """
        activity_list: List[ActivitySnapshot] = sorted(activities, key=lambda a: a.id)
        if not activity_list:
            raise EmptyInputError("No activities available for strategy generation")

        weight_list = sorted(weights, key=lambda w: w.key)
        preference = StrategyPreference(preference)

        weight_lines = "\n".join(
            f"- {w.key}（{w.label}）：{w.value}/10，{w.description}"
            for w in weight_list
        ) or "- （未配置权重，按均衡策略处理）"

        activities_json = json.dumps(
            [self.activity_to_dict(a) for a in activity_list],
            ensure_ascii=False,
            indent=2
        )
        weights_json = json.dumps(
            [self.weight_to_dict(w) for w in weight_list],
            ensure_ascii=False,
            indent=2
        )
        preference_text = self.preference_texts.get(preference.value, "")

        return (
            "请使用中文回答。你是一位专业的酒店收益管理专家，负责分析OTA（在线旅行平台）促销活动，"
            "并为酒店提供最佳参与策略，以最大化收益和入住率。\n"
            "\n"
            "## 酒店OTA促销活动数据\n"
            f"{activities_json}\n"
            "\n"
            "## 策略权重参数（0-10，数值越高越重要）\n"
            f"{weight_lines}\n"
            "\n"
            f"{weights_json}\n"
            "\n"
            "## 用户偏好\n"
            f"{preference.value}：{preference_text}\n"
            "\n"
            "基于以上信息，请为这些OTA促销活动生成3种不同的参与策略。每个策略必须包含：\n"
            "1. 策略名称\n"
            "2. 详细的策略方法描述\n"
            "3. 是否为推荐策略（只能有一个被推荐）\n"
            "4. 0-100的综合评分\n"
            "5. 3-5个具体优势\n"
            "6. 2-3个具体劣势或风险\n"
            "7. 4-6个可执行的实施步骤\n"
            "8. 2-3条执行注意事项\n"
            "9. 应当参与的活动ID\n"
            "10. 指标信息（预计增长与复杂度）\n"
            "\n"
            "只返回如下结构的JSON，不要在JSON前后添加任何解释：\n"
            f"{OUTPUT_SCHEMA}\n"
        )
