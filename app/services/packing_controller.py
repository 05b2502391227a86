import json
import logging
import re
import time
from datetime import date, timedelta
from typing import Callable, List, Optional

from pydantic import ValidationError

from app.models.packing import (
    Activity,
    Category,
    Formality,
    PackingList,
    SavedTripDetails,
    TripDetails,
    ViewState,
    calculate_duration,
)
from app.services.packing_service import PackingListService
from app.services.share_service import Clipboard, ShareTarget
from app.services.storage_service import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

PACKING_LIST_KEY = "packingList"
TRIP_DETAILS_KEY = "tripDetails"

CATEGORY_TITLES = {
    "outfitSuggestions": "Outfit Suggestions",
    "baseClothing": "Base Clothing",
    "footwear": "Footwear",
    "toiletries": "Toiletries",
    "accessoriesElectronics": "Accessories & Electronics",
    "documentsMoney": "Documents & Money",
}

INVALID_DATES_MESSAGE = "Please enter valid trip dates."
BLANK_ACTIVITY_MESSAGE = "Please describe all planned activities."
GENERATION_FAILED_MESSAGE = "Something went wrong while generating the list. Please try again."
SAVE_FAILED_MESSAGE = "Could not save the list. Storage may be unavailable or full."
CLEAR_FAILED_MESSAGE = "Could not remove the saved list."
SHARE_FAILED_MESSAGE = "Could not share the list."
COPY_FAILED_MESSAGE = "Could not copy the list to the clipboard."


def format_category_title(key: str) -> str:
    title = CATEGORY_TITLES.get(key)
    if title:
        return title
    spaced = re.sub(r"([A-Z])", r" \1", key)
    return spaced[:1].upper() + spaced[1:]


def get_packing_list_keys(packing_list: Optional[PackingList]) -> List[str]:
    if packing_list is None:
        return []
    return list(packing_list.model_dump().keys())


def build_share_text(packing_list: PackingList, details: SavedTripDetails) -> str:
    """Flatten a packing list into plain text, one section per category."""
    share_text = (
        f"Packing list for your trip to {details.destination} "
        f"({details.startDate} to {details.endDate}):\n\n"
    )
    data = packing_list.model_dump()
    for key in get_packing_list_keys(packing_list):
        share_text += f"--- {format_category_title(key)} ---\n"
        if key == "outfitSuggestions":
            for suggestion in data[key]:
                items = "\n  - ".join(suggestion["outfit"])
                share_text += f"For: {suggestion['activity']} ({suggestion['description']})\n  - {items}\n"
        else:
            share_text += "\n".join(data[key])
        share_text += "\n\n"
    return share_text


def default_activities() -> List[Activity]:
    return [
        Activity(description="Attending a conference and business meetings", time="day"),
        Activity(description="Evening outings and dinners", time="night"),
        Activity(description="City sightseeing", time="day"),
    ]


class PackingListController:
    """
    Trip form state, the generated list and its saved copy for one session.

    Validation and user-facing errors live here; the PackingListService only
    builds prompts and parses answers.
    """

    def __init__(
        self,
        packing_service: PackingListService,
        storage: KeyValueStorage,
        action_message_seconds: float = 3.0,
        today: Optional[date] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.packing_service = packing_service
        self.storage = storage
        self.action_message_seconds = action_message_seconds
        self._clock = clock

        today = today or date.today()
        self.destination = "Dubrovnik"
        self.startDate = (today + timedelta(days=30)).isoformat()
        self.endDate = (today + timedelta(days=34)).isoformat()
        self.activities: List[Activity] = default_activities()
        self.formality: Optional[Formality] = Formality.BUSINESS_CASUAL
        self.lightLuggage = False

        self.packing_list: Optional[PackingList] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self._generation_failed = False
        self.saved_trip_details: Optional[SavedTripDetails] = None
        self._action_message: Optional[str] = None
        self._action_message_at = 0.0

    # -------------------------
    # Derived state
    # -------------------------
    @property
    def duration(self) -> int:
        return calculate_duration(self.startDate, self.endDate)

    @property
    def action_message(self) -> Optional[str]:
        if self._action_message is None:
            return None
        if self._clock() - self._action_message_at >= self.action_message_seconds:
            self._action_message = None
        return self._action_message

    @property
    def status(self) -> str:
        """
        Generation status. Save, share and clear failures only set `error`,
        so they never turn a loaded list into `errored`.
        """
        if self.is_loading:
            return "loading"
        if self.packing_list is not None:
            return "loaded"
        if self._generation_failed:
            return "errored"
        return "idle"

    def _show_action_message(self, message: str):
        self._action_message = message
        self._action_message_at = self._clock()

    def _current_snapshot(self) -> SavedTripDetails:
        return SavedTripDetails(destination=self.destination, startDate=self.startDate, endDate=self.endDate)

    def trip_details(self) -> TripDetails:
        return TripDetails(
            destination=self.destination,
            startDate=self.startDate,
            endDate=self.endDate,
            activities=[activity.model_copy() for activity in self.activities],
            formality=self.formality,
            lightLuggage=self.lightLuggage,
        )

    # -------------------------
    # Form editing
    # -------------------------
    def update_trip(self, **fields):
        """Apply the given form fields. None clears formality and is ignored elsewhere."""
        if "formality" in fields:
            self.formality = fields["formality"]
        for name in ("destination", "startDate", "endDate", "lightLuggage"):
            if fields.get(name) is not None:
                setattr(self, name, fields[name])
        if fields.get("activities") is not None:
            self.activities = list(fields["activities"])

    def add_activity(self):
        self.activities = [*self.activities, Activity(description="", time="day")]

    def remove_activity(self, index: int):
        self.activities = [a for i, a in enumerate(self.activities) if i != index]

    def update_activity(self, index: int, description: Optional[str] = None, time: Optional[str] = None):
        if not 0 <= index < len(self.activities):
            raise IndexError(f"No activity at position {index}")
        changes = {}
        if description is not None:
            changes["description"] = description
        if time is not None:
            changes["time"] = time
        activities = list(self.activities)
        activities[index] = Activity(**{**activities[index].model_dump(), **changes})
        self.activities = activities

    # -------------------------
    # Generation
    # -------------------------
    def validate(self) -> Optional[str]:
        if self.duration <= 0:
            return INVALID_DATES_MESSAGE
        if any(activity.description.strip() == "" for activity in self.activities):
            return BLANK_ACTIVITY_MESSAGE
        return None

    async def generate_packing_list(self):
        validation_error = self.validate()
        if validation_error:
            self.error = validation_error
            self._generation_failed = True
            return

        self.is_loading = True
        self.error = None
        self._generation_failed = False
        self.packing_list = None
        self.saved_trip_details = None

        try:
            self.packing_list = await self.packing_service.generate_packing_list(self.trip_details())
        except Exception as e:
            logger.error(f"Packing list generation failed: {e}", exc_info=True)
            self.error = GENERATION_FAILED_MESSAGE
            self._generation_failed = True
        finally:
            self.is_loading = False

    # -------------------------
    # Saved list
    # -------------------------
    def save_list(self):
        if self.packing_list is None:
            return

        trip_details = self._current_snapshot()
        try:
            self.storage.set(PACKING_LIST_KEY, self.packing_list.model_dump_json())
            self.storage.set(TRIP_DETAILS_KEY, trip_details.model_dump_json())
        except StorageError as e:
            logger.error(f"Failed to save packing list: {e}")
            self.error = SAVE_FAILED_MESSAGE
            return

        self.saved_trip_details = trip_details
        self._show_action_message("List saved!")
        logger.info(f"Saved packing list for {trip_details.destination}")

    def load_saved_list(self):
        try:
            saved_list = self.storage.get(PACKING_LIST_KEY)
            saved_details = self.storage.get(TRIP_DETAILS_KEY)
            if saved_list and saved_details:
                packing_list = PackingList.model_validate_json(saved_list)
                trip_details = SavedTripDetails.model_validate_json(saved_details)
                self.packing_list = packing_list
                self.saved_trip_details = trip_details
                logger.info(f"Loaded saved packing list for {trip_details.destination}")
        except (StorageError, ValidationError, ValueError) as e:
            logger.warning(f"Discarding unreadable saved packing list: {e}")
            try:
                self.storage.remove(PACKING_LIST_KEY)
                self.storage.remove(TRIP_DETAILS_KEY)
            except StorageError as remove_error:
                logger.warning(f"Could not remove saved packing list: {remove_error}")

    def clear_saved_list(self):
        try:
            self.storage.remove(PACKING_LIST_KEY)
            self.storage.remove(TRIP_DETAILS_KEY)
        except StorageError as e:
            logger.error(f"Failed to clear saved packing list: {e}")
            self.error = CLEAR_FAILED_MESSAGE
        self.packing_list = None
        self.saved_trip_details = None

    # -------------------------
    # Sharing
    # -------------------------
    async def share_list(
        self,
        share_target: Optional[ShareTarget] = None,
        clipboard: Optional[Clipboard] = None,
    ) -> Optional[str]:
        """
        Share the current list through the native share target, or copy it
        to the clipboard when no share target is available. Returns the text.
        """
        if self.packing_list is None:
            return None

        details = self.saved_trip_details or self._current_snapshot()
        share_text = build_share_text(self.packing_list, details)

        if share_target is not None:
            try:
                await share_target.share(f"Packing list for {details.destination}", share_text)
            except Exception as e:
                logger.error(f"Sharing failed: {e}")
                self.error = SHARE_FAILED_MESSAGE
        else:
            try:
                if clipboard is None:
                    raise RuntimeError("No clipboard available")
                await clipboard.write_text(share_text)
                self._show_action_message("List copied!")
            except Exception as e:
                logger.error(f"Copying failed: {e}")
                self.error = COPY_FAILED_MESSAGE

        return share_text

    # -------------------------
    # Snapshot
    # -------------------------
    def view_state(self) -> ViewState:
        return ViewState(
            destination=self.destination,
            startDate=self.startDate,
            endDate=self.endDate,
            duration=self.duration,
            activities=self.activities,
            formality=self.formality,
            lightLuggage=self.lightLuggage,
            status=self.status,
            isLoading=self.is_loading,
            error=self.error,
            actionMessage=self.action_message,
            packingList=self.packing_list,
            categories=[
                Category(key=key, title=format_category_title(key))
                for key in get_packing_list_keys(self.packing_list)
            ],
            savedTripDetails=self.saved_trip_details,
        )
