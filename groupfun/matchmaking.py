"""Rules of the daily group marriage game: who may marry whom, and what happens."""

from __future__ import annotations

import random
import threading
import time
from typing import Callable, Iterable, Sequence

from .marriage import MaritalStatus, Marriage, MarriageRegistry, today

NameLookup = Callable[[int], str]

SKILL_COOLDOWN = 12 * 60 * 60
RECENT_MEMBERS = 30
AVATAR_URL = "http://q4.qlogo.cn/g?b=qq&nk={uid}&s=640"

CONFESSION_SUCCEEDED = (
    "是个勇敢的孩子(*/ω＼*) 今天的运气都降临在你的身边~\n\n",
    "(´･ω･`)对方答应了你 并表示愿意当今天的CP\n\n",
)
CONFESSION_FAILED = (
    "今天的运气有一点背哦~明天再试试叭",
    "_(:з」∠)_下次还有机会 咱抱抱你w",
    "今天失败了惹. 摸摸头~咱明天还有机会",
)
NTR_SUCCEEDED = ("因为你的个人魅力~~今天他就是你的了w\n\n",)
DIVORCE_FAILED = (
    "打是情，骂是爱，,不打不亲不相爱。答应我不要分手。",
    "床头打架床尾和，夫妻没有隔夜仇。安啦安啦，不要闹变扭。",
)
DIVORCE_SUCCEEDED = (
    "离婚成功力\n天涯何处无芳草，何必单恋一枝花？不如再摘一支（bushi",
    "离婚成功力\n话说你不考虑当个1？",
)

ALREADY_TOGETHER = "笨蛋~你们明明已经在一起了啊w"
STILL_SINGLE = "ta现在还是单身哦，快向ta表白吧！"
NOT_MARRIED = "今天你还没有结婚哦"


class Refusal(Exception):
    """A request the rules turn down; the message says why."""


class Cooldown:
    """Lets each key act once, then again only after the period has passed."""

    def __init__(self, period: float = SKILL_COOLDOWN) -> None:
        self.period = period
        self._ready: dict[str, float] = {}
        self._lock = threading.Lock()

    def allow(self, key: str, now: float | None = None) -> bool:
        """Consume the key's turn if it is available and report whether it was."""
        now = time.monotonic() if now is None else now
        with self._lock:
            if now < self._ready.get(key, float("-inf")):
                return False
            self._ready[key] = now + self.period
            return True


def _escape(text: str, param: bool = False) -> str:
    text = text.replace("&", "&amp;").replace("[", "&#91;").replace("]", "&#93;")
    if param:
        text = text.replace(",", "&#44;")
    return text


def _text(*parts: object) -> str:
    return _escape("".join(str(part) for part in parts))


def _at(uid: int) -> str:
    return f"[CQ:at,qq={uid}]"


def _avatar(uid: int) -> str:
    return f"[CQ:image,file={_escape(AVATAR_URL.format(uid=uid), param=True)},cache=0]"


def _partner(name: str, uid: int) -> str:
    return _text("\n[", name, "](", uid, ")哒")


def _target(marriage: Marriage | None) -> int:
    return marriage.target if marriage else 0


def _rng(rng: random.Random | None) -> random.Random:
    return rng or random.Random()


def ensure_today(registry: MarriageRegistry, gid: int) -> bool:
    """Reset the group if its registry is from an earlier day; report whether it was."""
    if registry.check_update(gid) != today():
        registry.reset(gid)
        return True
    return False


def check_proposal(registry: MarriageRegistry, gid: int, uid: int, fiancee: int) -> None:
    """Raise Refusal unless uid and fiancee are both free to marry."""
    if ensure_today(registry, gid):
        return
    own, own_status = registry.lookup(gid, uid)
    theirs, their_status = registry.lookup(gid, fiancee)
    if own_status is MaritalStatus.SINGLE and their_status is MaritalStatus.SINGLE:
        return
    if _target(own) == fiancee:
        raise Refusal(ALREADY_TOGETHER)
    if own_status is not MaritalStatus.SINGLE and _target(own) == 0:
        raise Refusal("今天的你是单身贵族噢")
    if own_status is MaritalStatus.GROOM:
        raise Refusal("笨蛋~你家里还有个吃白饭的w")
    if own_status is MaritalStatus.BRIDE:
        raise Refusal("该是0就是0，当0有什么不好")
    if their_status is not MaritalStatus.SINGLE and _target(theirs) == 0:
        raise Refusal("今天的ta是单身贵族噢")
    if their_status is MaritalStatus.GROOM:
        raise Refusal("他有别的女人了，你该放下了")
    if their_status is MaritalStatus.BRIDE:
        raise Refusal("这是一个纯爱的世界，拒绝NTR")


def check_mistress(registry: MarriageRegistry, gid: int, uid: int, fiancee: int) -> None:
    """Raise Refusal unless uid may come between fiancee and their partner."""
    if ensure_today(registry, gid):
        raise Refusal(STILL_SINGLE)
    own, own_status = registry.lookup(gid, uid)
    if _target(own) == fiancee:
        raise Refusal(ALREADY_TOGETHER)
    if own_status is not MaritalStatus.SINGLE and _target(own) == 0:
        raise Refusal("今天的你是单身贵族哦")
    if fiancee == uid:
        return
    if own_status is MaritalStatus.GROOM:
        raise Refusal("打灭，不给纳小妾！")
    if own_status is MaritalStatus.BRIDE:
        raise Refusal("该是0就是0，当0有什么不好")
    theirs, their_status = registry.lookup(gid, fiancee)
    if their_status is MaritalStatus.SINGLE:
        raise Refusal(STILL_SINGLE)
    if _target(theirs) == 0:
        raise Refusal("今天的ta是单身贵族哦")


def check_divorce(registry: MarriageRegistry, gid: int, uid: int) -> None:
    """Raise Refusal unless uid is married today."""
    if ensure_today(registry, gid):
        raise Refusal(NOT_MARRIED)
    _, status = registry.lookup(gid, uid)
    if status is MaritalStatus.SINGLE:
        raise Refusal(NOT_MARRIED)


def draw_wife(
    registry: MarriageRegistry,
    gid: int,
    uid: int,
    members: Iterable[tuple[int, int]],
    names: NameLookup,
    rng: random.Random | None = None,
) -> str:
    """Marry uid to a random single among the most recently active members.

    members holds (user_id, last_sent_time) pairs.
    """
    rng = _rng(rng)
    ensure_today(registry, gid)
    own, status = registry.lookup(gid, uid)
    if status is not MaritalStatus.SINGLE and _target(own) == 0:
        return _text("今天你是单身贵族噢")
    if status is MaritalStatus.GROOM:
        return (_at(uid) + _text("\n今天你已经娶过了，群老婆是") + _avatar(own.target)
                + _partner(own.targetname, own.target))
    if status is MaritalStatus.BRIDE:
        return (_at(uid) + _text("\n今天你被娶了，群老公是") + _avatar(own.user)
                + _partner(own.username, own.user))
    recent = sorted(members, key=lambda member: member[1])[-RECENT_MEMBERS:]
    candidates: Sequence[int] = [
        user for user, _ in recent
        if registry.lookup(gid, user)[1] is MaritalStatus.SINGLE
    ]
    if len(candidates) <= 1:
        return _text("~群里没有ta人是单身了哦 明天再试试叭")
    fiancee = rng.choice(candidates)
    if fiancee == uid:
        return _text("呜...没娶到，你可以再尝试一次")
    registry.register(gid, uid, fiancee, names(uid), names(fiancee))
    return (_at(uid) + _text("今天你的群老婆是") + _avatar(fiancee)
            + _partner(names(fiancee), fiancee))


def propose(
    registry: MarriageRegistry,
    gid: int,
    uid: int,
    fiancee: int,
    choice: str,
    names: NameLookup,
    rng: random.Random | None = None,
) -> str:
    """Try to marry ("娶") or be married by ("嫁") fiancee."""
    rng = _rng(rng)
    if uid == fiancee:
        if rng.randrange(3) == 1:
            registry.register(gid, uid, 0, "", "")
            return _text("今日获得成就：单身贵族")
        return _text("今日获得成就：自恋狂")
    if rng.randrange(2) == 0:
        return _text(rng.choice(CONFESSION_FAILED))
    if choice == "娶":
        registry.register(gid, uid, fiancee, names(uid), names(fiancee))
        role = "\n今天你的群老婆是"
    else:
        registry.register(gid, fiancee, uid, names(fiancee), names(uid))
        role = "\n今天你的群老公是"
    return (_text(rng.choice(CONFESSION_SUCCEEDED)) + _at(uid) + _text(role)
            + _avatar(fiancee) + _partner(names(fiancee), fiancee))


def steal(
    registry: MarriageRegistry,
    gid: int,
    uid: int,
    fiancee: int,
    names: NameLookup,
    rng: random.Random | None = None,
) -> str:
    """Try to take fiancee away from their partner."""
    rng = _rng(rng)
    if fiancee == uid:
        return _text("今日获得成就：自我攻略")
    if rng.randrange(10) // 4 != 0:
        return _text("失败了！可惜")
    _, status = registry.lookup(gid, fiancee)
    if status is MaritalStatus.SINGLE:
        return _text(STILL_SINGLE)
    if status is MaritalStatus.GROOM:
        registry.remarry(gid, fiancee, uid, names(fiancee), names(uid))
        role = "老公"
    else:
        registry.remarry(gid, uid, fiancee, names(uid), names(fiancee))
        role = "老婆"
    return (_text(rng.choice(NTR_SUCCEEDED)) + _at(uid) + _text("今天你的群" + role + "是")
            + _avatar(fiancee) + _partner(names(fiancee), fiancee))


def divorce(
    registry: MarriageRegistry,
    gid: int,
    uid: int,
    rng: random.Random | None = None,
) -> str | None:
    """Try to end uid's marriage; None when uid is not married."""
    rng = _rng(rng)
    marriage, status = registry.lookup(gid, uid)
    if status is MaritalStatus.GROOM:
        if rng.randrange(10) != 1:
            return _text(rng.choice(DIVORCE_FAILED))
        registry.divorce_wife(gid, marriage.target)
        return _text(DIVORCE_SUCCEEDED[0])
    if status is MaritalStatus.BRIDE:
        if rng.randrange(10) != 0:
            return _text(rng.choice(DIVORCE_FAILED))
        registry.divorce_husband(gid, marriage.user)
        return _text(DIVORCE_SUCCEEDED[1])
    return None