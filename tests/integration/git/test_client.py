"""Integration tests for GitClient against real repositories.

These run the installed git binary. Each test gets a fresh repository with
six commits of empty files A..F (see ``tests/fixtures/repos.py``).
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from git import Repo

from stackgit.exceptions import GitCommandError
from stackgit.git.client import GitClient
from tests.fixtures.repos import (
    FILE_NAMES,
    SeededRepo,
    commit_blank_file,
    init_repo,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def client(seeded_repo: SeededRepo) -> GitClient:
    return GitClient(cwd=seeded_repo.path)


def expected_new_files_diff(names: tuple[str, ...]) -> bytes:
    return "".join(
        f"diff --git a/{name} b/{name}\n"
        "new file mode 100644\n"
        "index 0000000..e69de29\n"
        for name in names
    ).encode()


class TestInspection:
    def test_describe_ref(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        for ref, description in zip(seeded_repo.refs, seeded_repo.descriptions):
            assert client.describe_ref(ref, "%B") == description

    def test_describe_unknown_ref(self, client: GitClient) -> None:
        with pytest.raises(GitCommandError) as exc_info:
            client.describe_ref("doesnt-exist", "%B")
        assert "show doesnt-exist" in str(exc_info.value)

    def test_diff(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        refs = seeded_repo.refs

        assert client.diff(refs[0], refs[5]) == expected_new_files_diff(FILE_NAMES[1:])
        assert client.diff(refs[2], refs[3]) == expected_new_files_diff(("D",))
        assert client.diff(refs[4], refs[4]) == b""

    def test_is_different(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        refs = seeded_repo.refs

        assert client.is_different(refs[0], refs[1]) is True
        assert client.is_different(refs[3], refs[3]) is False

    def test_reworded_commit_is_not_different(self, client: GitClient) -> None:
        old = client.rev_parse("HEAD")

        client.amend_with_message("reworded")

        assert old != client.rev_parse("HEAD")
        assert client.is_different(old, "HEAD") is False

    def test_current_branch(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        assert client.current_branch() == seeded_repo.default_branch

    def test_current_branch_detached(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        client.checkout(seeded_repo.refs[2])
        assert client.current_branch() == ""

    def test_rev_parse(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        assert client.rev_parse("HEAD") == seeded_repo.refs[-1]
        assert client.rev_parse("HEAD~5") == seeded_repo.refs[0]

    def test_rev_parse_unknown(self, client: GitClient) -> None:
        with pytest.raises(GitCommandError):
            client.rev_parse("doesnt-exist")

    def test_branch_exists(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        assert client.branch_exists(seeded_repo.default_branch) is True
        assert client.branch_exists("doesnt-exist") is False

    def test_log(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        log = client.log("--reverse", "--format=%s")
        assert log.splitlines() == list(seeded_repo.descriptions)


class TestHasChanges:
    def test_clean(self, client: GitClient) -> None:
        assert client.has_changes() is False

    def test_untracked_only(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        (seeded_repo.path / "untracked").write_text("x")
        assert client.has_changes() is False

    def test_modified(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        (seeded_repo.path / "A").write_text("changed\n")
        assert client.has_changes() is True

    def test_staged(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        (seeded_repo.path / "Z").touch()
        client.add("Z")
        assert client.has_changes() is True


class TestApplyPatch:
    PATCH = "diff --git a/F b/F\n--- a/F\n+++ b/F\n@@ -0,0 +0,5 @@\n+1\n+2\n+3\n+4\n"

    def test_recounts_hunk(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        client.apply_patch(self.PATCH)

        assert (seeded_repo.path / "F").read_text() == "1\n2\n3\n4\n"
        assert client.has_changes() is True

    def test_from_file_object(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        client.apply_patch(io.BytesIO(self.PATCH.encode()))
        assert (seeded_repo.path / "F").read_text() == "1\n2\n3\n4\n"

    def test_from_open_file(
        self, client: GitClient, seeded_repo: SeededRepo, tmp_path: Path
    ) -> None:
        patch_file = tmp_path / "F.patch"
        patch_file.write_text(self.PATCH)

        with open(patch_file, "rb") as f:
            client.apply_patch(f)

        assert (seeded_repo.path / "F").read_text() == "1\n2\n3\n4\n"

    def test_non_utf8_diff_reapplies_byte_for_byte(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        base = seeded_repo.refs[-1]
        (seeded_repo.path / "A").write_bytes(b"caf\xe9\n")
        seeded_repo.repo.git.add("A")
        seeded_repo.repo.git.commit("-m", "latin-1 content")

        patch = client.diff(base, "HEAD")
        client.checkout(base)
        client.apply_patch(patch)

        assert b"+caf\xe9\n" in patch
        assert (seeded_repo.path / "A").read_bytes() == b"caf\xe9\n"

    def test_rejects_garbage(self, client: GitClient) -> None:
        with pytest.raises(GitCommandError):
            client.apply_patch("this is not a patch\n")


class TestCommits:
    def test_commit(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        (seeded_repo.path / "Z").touch()
        client.add("Z")
        client.commit("file Z\n\nwith a body")

        assert client.describe_ref("HEAD", "%B") == "file Z\n\nwith a body"
        assert client.has_changes() is False

    def test_commit_nothing_staged(self, client: GitClient) -> None:
        with pytest.raises(GitCommandError):
            client.commit("empty")

    def test_amend_no_edit(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        (seeded_repo.path / "F").write_text("amended\n")
        client.add("F")
        client.amend_no_edit()

        assert client.describe_ref("HEAD", "%B") == "file F"
        assert client.rev_parse("HEAD") != seeded_repo.refs[-1]
        assert client.has_changes() is False

    def test_amend_with_message(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        client.amend_with_message("renamed")

        assert client.describe_ref("HEAD", "%B") == "renamed"
        assert client.rev_parse("HEAD~1") == seeded_repo.refs[-2]

    def test_amend_with_editor(self, seeded_repo: SeededRepo) -> None:
        client = GitClient(cwd=seeded_repo.path, env={"GIT_EDITOR": "true"})
        (seeded_repo.path / "F").write_text("amended\n")
        client.add("F")

        client.amend()

        assert client.describe_ref("HEAD", "%B") == "file F"
        assert client.has_changes() is False

    def test_rebase(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        default = seeded_repo.default_branch
        client.checkout(seeded_repo.refs[2])
        client.create_and_switch_to_branch("topic")
        commit_blank_file(seeded_repo.repo, "Z")

        client.rebase(default, "topic")

        assert client.current_branch() == "topic"
        assert client.rev_parse("HEAD~1") == seeded_repo.refs[-1]
        assert client.describe_ref("HEAD", "%s") == "file Z"


class TestBranches:
    def test_checkout(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        client.checkout(seeded_repo.refs[1])
        assert client.rev_parse("HEAD") == seeded_repo.refs[1]

    def test_checkout_unknown(self, client: GitClient) -> None:
        with pytest.raises(GitCommandError):
            client.checkout("doesnt-exist")

    def test_create_and_switch(self, client: GitClient) -> None:
        client.create_and_switch_to_branch("topic")
        assert client.current_branch() == "topic"

    def test_create_without_switching(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        client.create_branch("topic")

        assert client.branch_exists("topic") is True
        assert client.current_branch() == seeded_repo.default_branch

    def test_create_existing_fails(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        with pytest.raises(GitCommandError):
            client.create_branch(seeded_repo.default_branch)

    def test_create_forced_moves_branch(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        client.create_branch("topic")
        client.create_branch_forced("topic", seeded_repo.refs[1])

        assert client.rev_parse("topic") == seeded_repo.refs[1]
        assert client.current_branch() == seeded_repo.default_branch

    def test_force_delete(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        client.create_and_switch_to_branch("topic")
        commit_blank_file(seeded_repo.repo, "Z")
        client.checkout(seeded_repo.default_branch)

        client.force_delete_branch("topic")

        assert client.branch_exists("topic") is False


class TestAncestry:
    def test_fork_point(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        default = seeded_repo.default_branch
        head = client.rev_parse("HEAD")
        client.create_and_switch_to_branch("divergence")
        commit_blank_file(seeded_repo.repo, "Z")

        assert client.fork_point(default) == head
        assert client.fork_point(default, "divergence") == head

    def test_fork_point_unknown_ref(self, client: GitClient) -> None:
        with pytest.raises(GitCommandError):
            client.fork_point("doesnt-exist")

    def test_is_ancestor(self, client: GitClient, seeded_repo: SeededRepo) -> None:
        default = seeded_repo.default_branch
        client.checkout(seeded_repo.refs[2])
        client.create_and_switch_to_branch("divergence")
        commit_blank_file(seeded_repo.repo, "Z")

        assert client.is_ancestor(seeded_repo.refs[0], default) is True
        assert client.is_ancestor(seeded_repo.refs[4], "divergence") is False

    def test_is_ancestor_unknown_ref(self, client: GitClient) -> None:
        with pytest.raises(GitCommandError) as exc_info:
            client.is_ancestor("doesnt-exist", "HEAD")
        assert exc_info.value.returncode not in (0, 1)


class TestRemotes:
    def test_push_remote_from_upstream(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        client.create_branch("push-to-me")
        client.run("branch", "-u", "push-to-me")

        assert client.push_remote_for_branch(seeded_repo.default_branch) == "."

    def test_push_remote_preferred(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        branch = seeded_repo.default_branch
        client.run("config", f"branch.{branch}.remote", "origin")
        client.run("config", "--add", f"branch.{branch}.pushRemote", "dummy")

        assert client.push_remote_for_branch(branch) == "dummy"

    def test_no_remote_configured(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        with pytest.raises(GitCommandError):
            client.push_remote_for_branch(seeded_repo.default_branch)

    def test_push_and_set_upstream(
        self, seeded_repo_with_remote: tuple[SeededRepo, Repo]
    ) -> None:
        seeded, remote = seeded_repo_with_remote
        client = GitClient(cwd=seeded.path)
        branch = seeded.default_branch

        client.push_and_set_upstream("origin", branch)

        assert remote.commit(branch).hexsha == seeded.refs[-1]
        assert client.push_remote_for_branch(branch) == "origin"

    def test_push_branch_without_switching(
        self, seeded_repo_with_remote: tuple[SeededRepo, Repo]
    ) -> None:
        seeded, remote = seeded_repo_with_remote
        client = GitClient(cwd=seeded.path)
        client.create_branch_forced("topic", seeded.refs[2])
        client.run("config", "branch.topic.remote", "origin")

        client.push_branch("topic")

        assert remote.commit("topic").hexsha == seeded.refs[2]
        assert client.current_branch() == seeded.default_branch

    def test_force_push_branch(
        self, seeded_repo_with_remote: tuple[SeededRepo, Repo]
    ) -> None:
        seeded, remote = seeded_repo_with_remote
        client = GitClient(cwd=seeded.path)
        client.create_branch_forced("topic", seeded.refs[4])
        client.push_and_set_upstream("origin", "topic")
        client.create_branch_forced("topic", seeded.refs[1])

        with pytest.raises(GitCommandError):
            client.push_branch("topic")
        client.force_push_branch("topic")

        assert remote.commit("topic").hexsha == seeded.refs[1]

    def test_push_current_branch(
        self, seeded_repo_with_remote: tuple[SeededRepo, Repo]
    ) -> None:
        seeded, remote = seeded_repo_with_remote
        client = GitClient(cwd=seeded.path)
        branch = seeded.default_branch
        client.push_and_set_upstream("origin", branch)
        commit_blank_file(seeded.repo, "Z")

        client.push()

        assert remote.commit(branch).hexsha == client.rev_parse("HEAD")


class TestNotes:
    def test_force_add_replaces(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        cases = [
            (seeded_repo.refs[3], "test3"),
            (seeded_repo.refs[3], "test\n\nnewline"),
            (seeded_repo.refs[1], "test1"),
        ]
        for ref, note in cases:
            client.force_add_notes(ref, note)
            assert client.describe_ref(ref, "%N") == note

    def test_append_accumulates(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        cases = [
            (seeded_repo.refs[3], "test3", "test3"),
            (seeded_repo.refs[3], "test\n\nnewline", "test3\n\ntest\n\nnewline"),
            (seeded_repo.refs[1], "test1", "test1"),
        ]
        for ref, note, expected in cases:
            client.append_notes(ref, note)
            assert client.describe_ref(ref, "%N") == expected
            assert client.show_notes(ref) == expected

    def test_show_without_note(
        self, client: GitClient, seeded_repo: SeededRepo
    ) -> None:
        with pytest.raises(GitCommandError):
            client.show_notes(seeded_repo.refs[0])


class TestConstructionAgainstRealGit:
    def test_verify_available(self, client: GitClient) -> None:
        assert client.verify_available() is True

    def test_missing_executable(self, seeded_repo: SeededRepo) -> None:
        client = GitClient(cwd=seeded_repo.path, executable="stackgit-no-such-git")

        assert client.verify_available() is False
        with pytest.raises(GitCommandError) as exc_info:
            client.current_branch()
        assert exc_info.value.returncode == 127

    def test_clients_for_two_repos(
        self, seeded_repo: SeededRepo, tmp_path: Path
    ) -> None:
        other_repo = init_repo(tmp_path / "other")
        commit_blank_file(other_repo, "Q")
        other = GitClient(cwd=tmp_path / "other")
        main = GitClient(cwd=seeded_repo.path)

        assert other.rev_parse("HEAD") == other_repo.head.commit.hexsha
        assert main.rev_parse("HEAD") == seeded_repo.refs[-1]
        other_repo.close()
