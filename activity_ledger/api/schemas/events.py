"""Platform event shapes handed to the normalizers by the fetchers."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PlatformEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PullRequestReview(PlatformEvent):
    id: str
    author: str | None = None
    author_type: str | None = None
    state: str
    submitted_at: datetime | None = None
    html_url: str | None = None


class PullRequest(PlatformEvent):
    number: int
    title: str
    url: str
    author: str | None = None
    author_type: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    merged_at: datetime | None = None
    merged_by: str | None = None
    reviews: list[PullRequestReview] = Field(default_factory=list)


class IssueAssignEvent(PlatformEvent):
    created_at: datetime = Field(alias="createdAt")
    assignee: str | None = None


class Issue(PlatformEvent):
    number: int
    title: str
    url: str
    author: str | None = None
    author_type: str | None = None
    created_at: datetime
    closed: bool = False
    closed_at: datetime | None = None
    closed_by: str | None = None
    assign_events: list[IssueAssignEvent] = Field(default_factory=list)


class Comment(PlatformEvent):
    id: str
    issue_number: int | None = None
    body: str | None = None
    created_at: datetime
    author: str | None = None
    author_type: str | None = None
    html_url: str | None = None


class Commit(PlatformEvent):
    commit_id: str = Field(alias="commitId")
    branch_name: str = Field(alias="branchName")
    author: str | None = None
    author_type: str | None = None
    committed_date: datetime | None = Field(None, alias="committedDate")
    commit_message: str | None = Field(None, alias="commitMessage")
    url: str | None = None


class ChatMessage(PlatformEvent):
    type: str = "message"
    subtype: str | None = None
    user: str | None = None
    bot_id: str | None = None
    text: str | None = None
    ts: str
