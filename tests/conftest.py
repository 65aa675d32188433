"""Pytest configuration and shared fixtures."""

import pytest

# Sample diffs for testing
SAMPLE_DOTNET_DIFF = """\
diff --git a/src/Api/UserController.cs b/src/Api/UserController.cs
index 1111111..2222222 100644
--- a/src/Api/UserController.cs
+++ b/src/Api/UserController.cs
@@ -10,3 +10,6 @@ public class UserController
     public IActionResult Get(string name)
     {
+        var sql = $"SELECT * FROM Users WHERE Name = '{name}'";
+        var client = new HttpClient();
+        Console.WriteLine(sql);
         return Ok();
"""

SAMPLE_ANGULAR_DIFF = """\
diff --git a/web/src/app/app.component.ts b/web/src/app/app.component.ts
index 3333333..4444444 100644
--- a/web/src/app/app.component.ts
+++ b/web/src/app/app.component.ts
@@ -1,2 +1,4 @@
 export class AppComponent {
+  data: any;
+  constructor() { console.log('init'); }
 }
"""

SAMPLE_DELETED_DIFF = """\
diff --git a/src/Old.cs b/src/Old.cs
deleted file mode 100644
index 5555555..0000000
--- a/src/Old.cs
+++ /dev/null
@@ -1,2 +0,0 @@
-public class Old {}
-// gone
"""

SAMPLE_ADDED_DIFF = """\
diff --git a/src/New.cs b/src/New.cs
new file mode 100644
index 0000000..6666666
--- /dev/null
+++ b/src/New.cs
@@ -0,0 +1,2 @@
+public class New {}
+// fresh
"""

SAMPLE_DOTNET_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk">
  <ItemGroup>
    <PackageReference Include="Microsoft.NET.Test.Sdk" Version="17.8.0" />
    <PackageReference Include="xunit" Version="2.6.2" />
  </ItemGroup>
</Project>
"""

SAMPLE_ANGULAR_JSON = """\
{
  "version": 1,
  "projects": {
    "web": {
      "architect": {
        "build": {"builder": "@angular-devkit/build-angular:application"},
        "test": {"builder": "@angular-devkit/build-angular:karma"}
      }
    }
  }
}
"""


@pytest.fixture
def sample_dotnet_diff() -> str:
    """A C# diff with interpolated SQL, a new HttpClient and console output."""
    return SAMPLE_DOTNET_DIFF


@pytest.fixture
def sample_angular_diff() -> str:
    """A TypeScript diff with an ``any`` field and console.log."""
    return SAMPLE_ANGULAR_DIFF


@pytest.fixture
def sample_change_set():
    """ChangeSet built from the .NET, Angular and deleted-file diffs."""
    from local_review.models.changes import ChangeSet
    from local_review.vcs.extractor import parse_diff

    changes = parse_diff(SAMPLE_DOTNET_DIFF + SAMPLE_ANGULAR_DIFF + SAMPLE_DELETED_DIFF)
    return ChangeSet(root="/work", changes=tuple(changes))


@pytest.fixture
def empty_context(tmp_path):
    """ProjectContext with nothing detected."""
    from local_review.models.context import ProjectContext

    return ProjectContext(root=tmp_path)


@pytest.fixture
def dotnet_context(tmp_path):
    """ProjectContext with one solution and one test project."""
    from local_review.models.context import ProjectContext

    return ProjectContext(
        root=tmp_path,
        solution_paths=frozenset({tmp_path / "App.sln"}),
        test_project_paths=frozenset({tmp_path / "tests" / "App.Tests" / "App.Tests.csproj"}),
    )


@pytest.fixture
def full_context(tmp_path):
    """ProjectContext with .NET and Angular, both with test targets."""
    from local_review.models.context import ProjectContext

    angular = tmp_path / "web" / "angular.json"
    return ProjectContext(
        root=tmp_path,
        solution_paths=frozenset({tmp_path / "App.sln"}),
        angular_config_paths=frozenset({angular}),
        test_project_paths=frozenset(
            {tmp_path / "tests" / "App.Tests" / "App.Tests.csproj", angular}
        ),
    )


@pytest.fixture
def make_finding():
    """Factory for findings with sensible defaults."""
    from local_review.models.findings import Category, Finding

    def _make(**overrides):
        values = {
            "title": "SQL built with string interpolation",
            "file_path": "src/Api/UserController.cs",
            "line_number": 12,
            "category": Category.SECURITY,
            "detail": "User input reaches SQL.",
            "suggestion": "Use parameters.",
            "raw_confidence": 85,
            "source": "security",
        }
        values.update(overrides)
        return Finding(**values)

    return _make


@pytest.fixture
def git_repo(tmp_path):
    """A git repository with one committed C# file."""
    import git

    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    repo = git.Repo.init(repo_dir)
    with repo.config_writer() as cw:
        cw.set_value("user", "name", "Test User")
        cw.set_value("user", "email", "test@example.com")

    (repo_dir / "src").mkdir()
    (repo_dir / "src" / "Service.cs").write_text(
        "public class Service\n{\n    public void Run() { }\n}\n"
    )
    repo.index.add(["src/Service.cs"])
    repo.index.commit("initial commit")
    return repo

