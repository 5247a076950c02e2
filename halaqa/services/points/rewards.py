"""
Rewards store catalog.

Frames and badges students can buy with points. Tiers:
common (50-150), rare (300-600), legendary (1000-2500).
"""

from typing import Optional, List, Dict, Any

REWARD_TYPES = ("badge", "frame")
REWARD_TIERS = ("common", "rare", "legendary")

REWARDS: List[Dict[str, Any]] = [
    {"id": "frame_super", "type": "frame", "name": "الإطار الخارق", "cost": 2500, "image": "/frames/my_super_image.png", "tier": "legendary", "description": "الإطار الأكثر تميزًا"},
    {"id": "badge_coat_of_arms", "type": "badge", "name": "شعار النبالة", "cost": 2000, "image": "/badges/coat-of-arms.png", "tier": "legendary", "description": "شعار النبالة الملكي"},
    {"id": "badge_trophy_star_4", "type": "badge", "name": "كأس النجوم الماسي", "cost": 1800, "image": "/badges/trophy-star (4).png", "tier": "legendary", "description": "كأس النجوم الماسي النادر"},
    {"id": "badge_crown", "type": "badge", "name": "التاج الملكي", "cost": 1500, "image": "/badges/crown.png", "tier": "legendary", "description": "تاج الملوك الذهبي"},
    {"id": "badge_1st_prize", "type": "badge", "name": "المركز الأول", "cost": 1500, "image": "/badges/1st-prize.png", "tier": "legendary", "description": "شارة الفوز بالمركز الأول"},
    {"id": "frame_gold", "type": "frame", "name": "جائزة التميز الذهبية", "cost": 1200, "image": "/frames/award.png", "tier": "legendary", "description": "أعلى جائزة تميز"},
    {"id": "badge_crown_1", "type": "badge", "name": "التاج الفضي", "cost": 1200, "image": "/badges/crown (1).png", "tier": "legendary", "description": "تاج الأمراء"},
    {"id": "badge_diamond_1", "type": "badge", "name": "الماسة الملكية", "cost": 1200, "image": "/badges/diamond (1).png", "tier": "legendary", "description": "الماسة الملكية الفاخرة"},
    {"id": "badge_diamond", "type": "badge", "name": "الماسة", "cost": 1000, "image": "/badges/diamond.png", "tier": "legendary", "description": "الماسة النادرة"},
    {"id": "badge_trophy", "type": "badge", "name": "كأس البطولة", "cost": 1000, "image": "/badges/trophy.png", "tier": "legendary", "description": "كأس الفائزين الذهبي"},
    {"id": "frame_wreath_award", "type": "frame", "name": "إكليل النصر الملكي", "cost": 600, "image": "/frames/wreath-award.png", "tier": "rare", "description": "إكليل الأبطال"},
    {"id": "frame_laurel", "type": "frame", "name": "غار المتفوقين", "cost": 550, "image": "/frames/laurel-wreath.png", "tier": "rare", "description": "إكليل الغار للمتفوقين"},
    {"id": "badge_trophy_star", "type": "badge", "name": "كأس النجوم", "cost": 500, "image": "/badges/trophy-star.png", "tier": "rare", "description": "كأس النجوم المتألق"},
    {"id": "badge_award", "type": "badge", "name": "جائزة التميز", "cost": 500, "image": "/badges/award.png", "tier": "rare", "description": "جائزة التقدير الخاصة"},
    {"id": "frame_daisy", "type": "frame", "name": "زهرة الأقحوان", "cost": 450, "image": "/frames/daisy.png", "tier": "rare", "description": "إطار زهرة الأقحوان"},
    {"id": "badge_trophy_star_1", "type": "badge", "name": "كأس النجوم الفضي", "cost": 450, "image": "/badges/trophy-star (1).png", "tier": "rare", "description": "كأس النجوم الفضي"},
    {"id": "badge_film_award", "type": "badge", "name": "جائزة السينما", "cost": 400, "image": "/badges/film-award.png", "tier": "rare", "description": "جائزة الإبداع"},
    {"id": "badge_trophy_star_2", "type": "badge", "name": "كأس النجوم البرونزي", "cost": 400, "image": "/badges/trophy-star (2).png", "tier": "rare", "description": "كأس النجوم البرونزي"},
    {"id": "badge_gold_medal", "type": "badge", "name": "الميدالية الذهبية", "cost": 400, "image": "/badges/gold-medal.png", "tier": "rare", "description": "ميدالية الشرف الذهبية"},
    {"id": "frame_flower_purple", "type": "frame", "name": "الزهرة البنفسجية", "cost": 350, "image": "/frames/flower_3.png", "tier": "rare", "description": "إطار الزهرة البنفسجية"},
    {"id": "frame_flower", "type": "frame", "name": "زهرة الربيع", "cost": 350, "image": "/frames/flower.png", "tier": "rare", "description": "إطار زهرة الربيع"},
    {"id": "badge_first_2", "type": "badge", "name": "الأول المميز", "cost": 350, "image": "/badges/first (2).png", "tier": "rare", "description": "شارة الأول الخاصة"},
    {"id": "badge_high_quality", "type": "badge", "name": "الجودة العالية", "cost": 350, "image": "/badges/high-quality.png", "tier": "rare", "description": "ختم الجودة المميزة"},
    {"id": "badge_first", "type": "badge", "name": "الأول", "cost": 300, "image": "/badges/first.png", "tier": "rare", "description": "شارة المركز الأول"},
    {"id": "badge_success", "type": "badge", "name": "النجاح", "cost": 300, "image": "/badges/success.png", "tier": "rare", "description": "شارة النجاح والتفوق"},
    {"id": "badge_rank_1", "type": "badge", "name": "الرتبة الذهبية", "cost": 150, "image": "/badges/rank (1).png", "tier": "common", "description": "شارة الرتبة العليا"},
    {"id": "badge_reward_1", "type": "badge", "name": "المكافأة الذهبية", "cost": 150, "image": "/badges/reward (1).png", "tier": "common", "description": "شارة المكافأة الذهبية"},
    {"id": "frame_classic", "type": "frame", "name": "الإطار الكلاسيكي", "cost": 150, "image": "/frames/frame.png", "tier": "common", "description": "إطار كلاسيكي أنيق"},
    {"id": "frame_photo", "type": "frame", "name": "برواز الذكريات", "cost": 150, "image": "/frames/photo-frame.png", "tier": "common", "description": "برواز ذكريات جميل"},
    {"id": "badge_heart", "type": "badge", "name": "القلب الذهبي", "cost": 120, "image": "/badges/heart.png", "tier": "common", "description": "قلب المحبة والإخلاص"},
    {"id": "badge_generic_2", "type": "badge", "name": "شارة خاصة", "cost": 120, "image": "/badges/badge (2).png", "tier": "common", "description": "شارة خاصة ونادرة"},
    {"id": "badge_club", "type": "badge", "name": "العصا", "cost": 120, "image": "/badges/club.png", "tier": "common", "description": "عصا القوة"},
    {"id": "badge_power", "type": "badge", "name": "القوة", "cost": 100, "image": "/badges/power.png", "tier": "common", "description": "شارة القوة والتحدي"},
    {"id": "badge_rank", "type": "badge", "name": "الرتبة", "cost": 100, "image": "/badges/rank.png", "tier": "common", "description": "شارة الرتبة العسكرية"},
    {"id": "badge_reward", "type": "badge", "name": "المكافأة", "cost": 100, "image": "/badges/reward.png", "tier": "common", "description": "شارة المكافأة الخاصة"},
    {"id": "badge_laurel", "type": "badge", "name": "إكليل الغار", "cost": 100, "image": "/badges/laurel.png", "tier": "common", "description": "إكليل النصر التقليدي"},
    {"id": "badge_axe", "type": "badge", "name": "الفأس", "cost": 100, "image": "/badges/axe.png", "tier": "common", "description": "فأس المحارب"},
    {"id": "badge_generic_1", "type": "badge", "name": "شارة مميزة", "cost": 100, "image": "/badges/badge (1).png", "tier": "common", "description": "شارة مميزة للطلاب"},
    {"id": "frame_wreath", "type": "frame", "name": "إكليل البراعم", "cost": 100, "image": "/frames/wreath.png", "tier": "common", "description": "إكليل البراعم الجميل"},
    {"id": "badge_wreath", "type": "badge", "name": "إكليل الزهور", "cost": 80, "image": "/badges/wreath.png", "tier": "common", "description": "إكليل الزهور الجميل"},
    {"id": "badge_frame", "type": "badge", "name": "شارة الإطار", "cost": 80, "image": "/badges/frame.png", "tier": "common", "description": "شارة بتصميم الإطار"},
    {"id": "badge_check_mark", "type": "badge", "name": "علامة الصح", "cost": 80, "image": "/badges/check-mark.png", "tier": "common", "description": "علامة الإنجاز"},
    {"id": "badge_star", "type": "badge", "name": "نجمة التميز", "cost": 50, "image": "/badges/star.png", "tier": "common", "description": "نجمة التميز اللامعة"},
    {"id": "badge_generic", "type": "badge", "name": "شارة كلاسيكية", "cost": 50, "image": "/badges/badge.png", "tier": "common", "description": "شارة كلاسيكية بسيطة"},
    {"id": "frame_circle", "type": "frame", "name": "الدائرة البسيطة", "cost": 50, "image": "/frames/circle.png", "tier": "common", "description": "إطار دائري بسيط"},
    {"id": "frame_round", "type": "frame", "name": "الإطار الدائري", "cost": 50, "image": "/frames/round.png", "tier": "common", "description": "إطار دائري أنيق"},
]

_REWARDS_BY_ID = {reward["id"]: reward for reward in REWARDS}


def get_reward(reward_id: str) -> Optional[Dict[str, Any]]:
    return _REWARDS_BY_ID.get(reward_id)


def list_rewards(
    reward_type: Optional[str] = None,
    tier: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Catalog filtered by type and tier, most expensive first."""
    rewards = [
        reward for reward in REWARDS
        if (reward_type is None or reward["type"] == reward_type)
        and (tier is None or reward["tier"] == tier)
    ]
    return sorted(rewards, key=lambda reward: reward["cost"], reverse=True)
