import random
from typing import Optional
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError
from config import CORS_ORIGINS, PORT, HOST, DEBUG, LOG_LEVEL, LOG_FILE, LOG_RETENTION, AUTO_WATER_BREAKS, DEFAULT_PRACTICE_MINUTES
from database import (
    init_db, list_documents, get_document, add_document, update_document, delete_document
)
from logger import setup_logger
from models import (
    Player, Drill, Coach, Equipment, Practice, Group, RotationBlock,
    TimeEngineResult, PracticeTimeResponse, RotationResult, GroupStats,
    BlockDurationRequest, RemainingTimeRequest, WaterBreakRequest, WaterBreakResponse,
    CreateGroupsRequest, CreatePartnersRequest, BalanceGroupsRequest, MovePlayerRequest,
    PracticeGroupsRequest, RenameGroupRequest, PlayerRef, MoveInPracticeRequest,
    RotationRequest, SyncStationsRequest, GroupsAtTimeRequest,
)
from constants import (
    WATER_BREAK_INTERVAL, WATER_BREAK_DURATION, GROUP_LETTERS, MIN_GROUP_SIZE, MAX_GROUP_SIZE,
    DRILL_CATEGORIES, SKILL_LEVELS, PLAYER_STATUSES, PRACTICE_STATUSES, COLLECTIONS, GROUP_TYPES,
)
from time_engine import (
    block_duration, remaining_time, water_breaks_needed, water_break_positions,
    time_status, used_percent, time_label, insert_water_breaks, is_water_break,
)
from grouping import (
    get_present_players, create_groups, create_partners, balance_groups, suggest_group_count,
    get_group_stats, groups_of_type, replace_partition, clear_partition, rename_group,
    add_player_to_group, remove_player_from_group, move_player,
)
from rotation import (
    calculate_rotation, validate_rotation, generate_rotation_matrix, sync_station_durations,
    get_groups_at_time, rotation_total_time, stations_in_sync,
)

setup_logger(level=LOG_LEVEL, log_file=LOG_FILE, retention=LOG_RETENTION)

app = FastAPI(
    title="Practice Planner API",
    version="1.0.0",
    docs_url="/api/docs" if DEBUG else None,
    redoc_url="/api/redoc" if DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

COLLECTION_MODELS = {
    "players": Player,
    "drills": Drill,
    "coaches": Coach,
    "equipment": Equipment,
    "practices": Practice,
}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": True, "status_code": exc.status_code, "message": exc.detail, "path": str(request.url.path)}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": True, "status_code": 500, "message": "Internal server error", "path": str(request.url.path)}
    )


@app.on_event("startup")
def startup():
    init_db()


def make_rng(seed: Optional[int]) -> Optional[random.Random]:
    return random.Random(seed) if seed is not None else None


def load_practice(practice_id: str) -> Practice:
    doc = get_document("practices", practice_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Practice not found")
    return Practice(**doc)


def save_practice(practice: Practice) -> Practice:
    doc = update_document("practices", practice.id, practice.model_dump(mode="json"))
    if not doc:
        raise HTTPException(status_code=404, detail="Practice not found")
    return Practice(**doc)


def present_players_for(practice: Practice) -> list[Player]:
    players = [Player(**doc) for doc in list_documents("players")]
    return get_present_players(players, practice.attendance)


# ============ PRACTICE TIME ============

@app.get("/api/practices/{practice_id}/time", response_model=PracticeTimeResponse)
def get_practice_time(practice_id: str, auto_water_breaks: bool = AUTO_WATER_BREAKS):
    practice = load_practice(practice_id)
    result = remaining_time(practice.total_minutes, practice.session_blocks, auto_water_breaks)
    return PracticeTimeResponse(
        result=result,
        water_break_positions=water_break_positions(practice.session_blocks),
        status=time_status(result.remaining_minutes, result.total_minutes),
        used_percent=used_percent(result),
        label=time_label(result),
    )


@app.post("/api/practices/{practice_id}/water-breaks", response_model=Practice)
def place_practice_water_breaks(practice_id: str):
    practice = load_practice(practice_id)
    practice.session_blocks = insert_water_breaks(practice.session_blocks)
    saved = save_practice(practice)
    breaks = sum(1 for b in saved.session_blocks if is_water_break(b))
    logger.bind(practice_id=practice_id).info(f"Placed {breaks} water break(s)")
    return saved


# ============ PRACTICE GROUPS ============

@app.post("/api/practices/{practice_id}/groups", response_model=list[Group])
def create_practice_groups(practice_id: str, request: PracticeGroupsRequest):
    practice = load_practice(practice_id)
    present = present_players_for(practice)
    new_groups = create_groups(present, request.number_of_groups, make_rng(request.seed))

    practice.groups = replace_partition(practice.groups, new_groups, "group")
    save_practice(practice)
    logger.bind(practice_id=practice_id).info(f"Created {len(new_groups)} groups from {len(present)} players")
    return new_groups


@app.post("/api/practices/{practice_id}/partners", response_model=list[Group])
def create_practice_partners(practice_id: str, request: PracticeGroupsRequest):
    practice = load_practice(practice_id)
    present = present_players_for(practice)
    partners = create_partners(present, make_rng(request.seed))

    practice.groups = replace_partition(practice.groups, partners, "partner")
    save_practice(practice)
    logger.bind(practice_id=practice_id).info(f"Created {len(partners)} partner units")
    return partners


@app.post("/api/practices/{practice_id}/groups/balance", response_model=list[Group])
def balance_practice_groups(practice_id: str):
    practice = load_practice(practice_id)
    balanced = balance_groups(groups_of_type(practice.groups, "group"))

    practice.groups = replace_partition(practice.groups, balanced, "group")
    save_practice(practice)
    return balanced


@app.get("/api/practices/{practice_id}/groups/suggest")
def suggest_practice_group_count(practice_id: str):
    practice = load_practice(practice_id)
    present = present_players_for(practice)
    rotations = sum(1 for b in practice.session_blocks if isinstance(b, RotationBlock))
    return {
        "present_players": len(present),
        "rotation_blocks": rotations,
        "suggested": suggest_group_count(len(present), rotations),
    }


@app.delete("/api/practices/{practice_id}/groups")
def clear_practice_groups(practice_id: str, group_type: str = Query("all", alias="type")):
    if group_type not in GROUP_TYPES + ["all"]:
        raise HTTPException(status_code=400, detail="type must be 'group', 'partner' or 'all'")

    practice = load_practice(practice_id)
    if group_type == "all":
        practice.groups = {}
    else:
        practice.groups = clear_partition(practice.groups, group_type)
    save_practice(practice)
    return {"message": "Groups cleared"}


@app.put("/api/practices/{practice_id}/groups/{group_id}", response_model=Group)
def rename_practice_group(practice_id: str, group_id: str, request: RenameGroupRequest):
    practice = load_practice(practice_id)
    if group_id not in practice.groups:
        raise HTTPException(status_code=404, detail="Group not found")

    practice.groups = rename_group(practice.groups, group_id, request.name)
    save_practice(practice)
    return practice.groups[group_id]


@app.post("/api/practices/{practice_id}/groups/{group_id}/players", response_model=Group)
def add_practice_group_player(practice_id: str, group_id: str, request: PlayerRef):
    practice = load_practice(practice_id)
    if group_id not in practice.groups:
        raise HTTPException(status_code=404, detail="Group not found")

    updated = add_player_to_group(practice.groups, group_id, request.player_id)
    if updated[group_id] == practice.groups[group_id]:
        raise HTTPException(status_code=409, detail="Player already assigned")

    practice.groups = updated
    save_practice(practice)
    return updated[group_id]


@app.delete("/api/practices/{practice_id}/groups/{group_id}/players/{player_id}", response_model=Group)
def remove_practice_group_player(practice_id: str, group_id: str, player_id: str):
    practice = load_practice(practice_id)
    if group_id not in practice.groups:
        raise HTTPException(status_code=404, detail="Group not found")

    practice.groups = remove_player_from_group(practice.groups, group_id, player_id)
    save_practice(practice)
    return practice.groups[group_id]


@app.post("/api/practices/{practice_id}/groups/move", response_model=dict[str, Group])
def move_practice_player(practice_id: str, request: MoveInPracticeRequest):
    practice = load_practice(practice_id)
    practice.groups = move_player(practice.groups, request.player_id, request.from_group_id, request.to_group_id)
    save_practice(practice)
    return practice.groups


# ============ ENGINE ============

@app.post("/api/engine/block-duration")
def compute_block_duration(request: BlockDurationRequest):
    return {"duration": block_duration(request.block)}


@app.post("/api/engine/remaining-time", response_model=TimeEngineResult)
def compute_remaining_time(request: RemainingTimeRequest):
    return remaining_time(request.total_minutes, request.session_blocks, request.auto_water_breaks)


@app.post("/api/engine/water-breaks", response_model=WaterBreakResponse)
def compute_water_breaks(request: WaterBreakRequest):
    drill_minutes = sum(block_duration(b) for b in request.session_blocks)
    return WaterBreakResponse(
        drill_minutes=drill_minutes,
        water_breaks_needed=water_breaks_needed(drill_minutes),
        positions=water_break_positions(request.session_blocks),
    )


@app.post("/api/engine/groups", response_model=list[Group])
def compute_groups(request: CreateGroupsRequest):
    present = get_present_players(request.players, request.attendance)
    return create_groups(present, request.number_of_groups, make_rng(request.seed))


@app.post("/api/engine/partners", response_model=list[Group])
def compute_partners(request: CreatePartnersRequest):
    present = get_present_players(request.players, request.attendance)
    return create_partners(present, make_rng(request.seed))


@app.post("/api/engine/groups/balance", response_model=list[Group])
def compute_balanced_groups(request: BalanceGroupsRequest):
    return balance_groups(request.groups)


@app.post("/api/engine/groups/stats", response_model=GroupStats)
def compute_group_stats(request: BalanceGroupsRequest):
    return get_group_stats(request.groups)


@app.get("/api/engine/groups/suggest")
def compute_group_suggestion(player_count: int, drill_count: int = 0):
    return {"suggested": suggest_group_count(player_count, drill_count)}


@app.post("/api/engine/groups/move", response_model=dict[str, Group])
def compute_player_move(request: MovePlayerRequest):
    return move_player(request.groups, request.player_id, request.from_group_id, request.to_group_id)


# ============ ROTATIONS ============

@app.post("/api/rotations/calculate", response_model=RotationResult)
def compute_rotation(request: RotationRequest):
    return calculate_rotation(request.stations, request.groups)


@app.post("/api/rotations/validate")
def check_rotation(request: RotationRequest):
    issues = validate_rotation(request.stations, request.groups, request.simultaneous)
    return {
        "valid": not issues,
        "issues": issues,
        "total_time": rotation_total_time(request.stations, request.simultaneous),
        "stations_in_sync": stations_in_sync(request.stations),
    }


@app.post("/api/rotations/matrix")
def compute_rotation_matrix(request: RotationRequest):
    return {"matrix": generate_rotation_matrix(request.stations, request.groups, request.drill_titles)}


@app.post("/api/rotations/sync")
def compute_synced_stations(request: SyncStationsRequest):
    stations = sync_station_durations(request.stations, request.target_duration)
    return {"stations": [s.model_dump(mode="json") for s in stations]}


@app.post("/api/rotations/at-time")
def compute_groups_at_time(request: GroupsAtTimeRequest):
    active = get_groups_at_time(request.rotation_schedule, request.minute)
    return {group_id: slot.model_dump(mode="json") for group_id, slot in active.items()}


# ============ CONFIGURATION ============

@app.get("/api/config")
def get_config():
    return {
        "water_break": {"interval": WATER_BREAK_INTERVAL, "duration": WATER_BREAK_DURATION, "auto": AUTO_WATER_BREAKS},
        "default_practice_minutes": DEFAULT_PRACTICE_MINUTES,
        "group_letters": GROUP_LETTERS,
        "group_size": {"min": MIN_GROUP_SIZE, "max": MAX_GROUP_SIZE},
        "drill_categories": DRILL_CATEGORIES,
        "skill_levels": SKILL_LEVELS,
        "player_statuses": PLAYER_STATUSES,
        "practice_statuses": PRACTICE_STATUSES,
        "collections": COLLECTIONS,
    }


# ============ HEALTH CHECK ============

@app.get("/api/health")
def health_check():
    return {"status": "ok"}


# ============ DOCUMENTS ============

def collection_model(collection: str):
    model = COLLECTION_MODELS.get(collection)
    if model is None:
        raise HTTPException(status_code=404, detail=f"Unknown collection '{collection}'")
    return model


def parse_document(model, data: dict):
    try:
        return model(**data)
    except ValidationError as exc:
        message = "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())
        raise HTTPException(status_code=422, detail=message)


@app.get("/api/{collection}")
def list_collection(collection: str):
    model = collection_model(collection)
    return [model(**doc).model_dump(mode="json") for doc in list_documents(collection)]


@app.post("/api/{collection}")
def create_document(collection: str, body: dict):
    model = collection_model(collection)
    item = parse_document(model, body)
    doc = add_document(collection, item.model_dump(mode="json"))
    logger.info(f"Created {collection}/{doc['id']}")
    return model(**doc).model_dump(mode="json")


@app.get("/api/{collection}/{doc_id}")
def read_document(collection: str, doc_id: str):
    model = collection_model(collection)
    doc = get_document(collection, doc_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Document not found")
    return model(**doc).model_dump(mode="json")


@app.put("/api/{collection}/{doc_id}")
def replace_document(collection: str, doc_id: str, body: dict):
    model = collection_model(collection)
    item = parse_document(model, {**body, "id": doc_id})
    doc = update_document(collection, doc_id, item.model_dump(mode="json"))
    if not doc:
        raise HTTPException(status_code=404, detail="Document not found")
    logger.info(f"Updated {collection}/{doc_id}")
    return model(**doc).model_dump(mode="json")


@app.delete("/api/{collection}/{doc_id}")
def remove_document(collection: str, doc_id: str):
    collection_model(collection)
    if not delete_document(collection, doc_id):
        raise HTTPException(status_code=404, detail="Document not found")
    logger.info(f"Deleted {collection}/{doc_id}")
    return {"message": "Document deleted"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT, reload=DEBUG)
