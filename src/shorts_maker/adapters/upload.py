"""
IPublishingPlatform adapter: uploads and publishes shorts with the YouTube Data API v3.
"""

import asyncio
import io
import os
import pickle
from typing import Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from shorts_maker import config
from shorts_maker.domain.errors import (
    PermanentServiceError,
    ServiceError,
    TransientServiceError,
)
from shorts_maker.domain.models import PublishMetadata, PublishResult
from shorts_maker.logging_config import get_logger
from shorts_maker.ports.interfaces import IPublishingPlatform

logger = get_logger(__name__)

# YouTube API scopes
SCOPES = ["https://www.googleapis.com/auth/youtube.upload"]

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
CHUNK_RETRIES = 3
CHUNK_SIZE = 8 * 1024 * 1024


def translate_error(error: Exception) -> ServiceError:
    """Map googleapiclient/transport errors onto the service error taxonomy."""
    if isinstance(error, ServiceError):
        return error
    if isinstance(error, HttpError):
        status = error.resp.status
        message = f"YouTube API returned status {status}: {error.reason}"
        if status in RETRYABLE_STATUS:
            return TransientServiceError(message, service="youtube")
        return PermanentServiceError(message, service="youtube")
    if isinstance(error, (httplib2.HttpLib2Error, ConnectionError, TimeoutError)):
        return TransientServiceError(f"YouTube connection error: {error}", service="youtube")
    return PermanentServiceError(f"YouTube upload error: {error}", service="youtube")


class YouTubePublisher(IPublishingPlatform):
    """
    Handles uploading videos to a YouTube channel.
    OAuth credentials are loaded from a pickled token and refreshed when expired.
    """

    def __init__(self, credentials_file: Optional[str] = None, token_file: Optional[str] = None):
        self.credentials_file = credentials_file or config.YOUTUBE_CREDENTIALS_FILE
        self.token_file = token_file or config.YOUTUBE_TOKEN_FILE
        self.youtube = None
        self.credentials = None

    def authenticate(self) -> None:
        """Authenticate with the YouTube API using OAuth2. Raises PermanentServiceError on failure."""
        if os.path.exists(self.token_file):
            try:
                with open(self.token_file, "rb") as token:
                    self.credentials = pickle.load(token)
            except (pickle.UnpicklingError, EOFError, AttributeError, ImportError) as e:
                raise PermanentServiceError(
                    f"Unreadable token file {self.token_file}: {e}", service="youtube"
                ) from e

        if not self.credentials or not self.credentials.valid:
            try:
                if self.credentials and self.credentials.expired and self.credentials.refresh_token:
                    self.credentials.refresh(Request())
                else:
                    if not os.path.exists(self.credentials_file):
                        raise PermanentServiceError(
                            f"Credentials file not found: {self.credentials_file}", service="youtube"
                        )
                    flow = InstalledAppFlow.from_client_secrets_file(self.credentials_file, SCOPES)
                    self.credentials = flow.run_local_server(port=0)
            except GoogleAuthError as e:
                raise PermanentServiceError(f"Authentication failed: {e}", service="youtube") from e

            with open(self.token_file, "wb") as token:
                pickle.dump(self.credentials, token)

        self.youtube = build("youtube", "v3", credentials=self.credentials)
        logger.info("✅ YouTube API authenticated successfully")

    async def upload(
        self,
        video: bytes,
        thumbnail: bytes,
        metadata: PublishMetadata,
    ) -> PublishResult:
        return await asyncio.to_thread(self.upload_video, video, thumbnail, metadata)

    def upload_video(self, video: bytes, thumbnail: bytes, metadata: PublishMetadata) -> PublishResult:
        try:
            if not self.youtube:
                self.authenticate()

            body = {
                "snippet": {
                    "title": metadata.title,
                    "description": metadata.description,
                    "tags": list(metadata.tags),
                    "categoryId": metadata.category_id,
                },
                "status": {
                    "privacyStatus": metadata.privacy_status,
                    "selfDeclaredMadeForKids": False,
                },
            }
            media = MediaIoBaseUpload(
                io.BytesIO(video), mimetype="video/mp4", chunksize=CHUNK_SIZE, resumable=True
            )
            logger.info("📤 Uploading video to YouTube: %s (%s)", metadata.title, metadata.privacy_status)
            insert_request = self.youtube.videos().insert(
                part=",".join(body.keys()), body=body, media_body=media
            )
            response = self._resumable_upload(insert_request)
        except (HttpError, httplib2.HttpLib2Error, OSError, ServiceError) as e:
            raise translate_error(e) from e

        video_id = response["id"]
        url = f"https://www.youtube.com/watch?v={video_id}"
        logger.info("✅ Video uploaded successfully: %s", url)

        if thumbnail:
            self._set_thumbnail(video_id, thumbnail)
        return PublishResult(video_id=video_id, url=url)

    def _resumable_upload(self, insert_request) -> dict:
        """Drive the chunk loop; transient chunk errors resume from the last acknowledged byte."""
        response = None
        retry = 0
        while response is None:
            try:
                status, response = insert_request.next_chunk()
            except (HttpError, httplib2.HttpLib2Error, ConnectionError) as e:
                error = translate_error(e)
                retry += 1
                if isinstance(error, PermanentServiceError) or retry > CHUNK_RETRIES:
                    raise error from e
                logger.warning("⚠️  Upload error (retry %d/%d): %s", retry, CHUNK_RETRIES, error.message)
                continue
            if response is None and status:
                logger.debug("Upload progress: %d%%", int(status.progress() * 100))

        if "id" not in response:
            raise PermanentServiceError(f"Unexpected upload response: {response}", service="youtube")
        return response

    def _set_thumbnail(self, video_id: str, thumbnail: bytes) -> None:
        """Thumbnail errors are logged; the video is already published."""
        try:
            self.youtube.thumbnails().set(
                videoId=video_id,
                media_body=MediaIoBaseUpload(io.BytesIO(thumbnail), mimetype="image/png"),
            ).execute()
            logger.info("✅ Thumbnail uploaded")
        except (HttpError, httplib2.HttpLib2Error, OSError) as e:
            logger.warning("⚠️  Could not upload thumbnail: %s", e)
