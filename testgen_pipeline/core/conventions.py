"""
Language and framework conventions.

Two independent axes feed the prompt:
- LanguageProfile: syntax/typing expectations, file extension, fence tags
- FrameworkProfile: assertion style, mocking idioms, setup/teardown shape,
  and the test file naming pattern
"""

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class LanguageProfile:
    key: str
    name: str
    extension: str
    fence_tag: str
    frameworks: tuple[str, ...]
    conventions: tuple[str, ...]


@dataclass(frozen=True)
class FrameworkProfile:
    key: str
    name: str
    # {stem} is the source file stem, {Stem} the same with a capitalized first letter
    file_pattern: str
    conventions: tuple[str, ...]

    def test_file_name(self, source_stem: str, extension: str) -> str:
        capitalized = source_stem[:1].upper() + source_stem[1:]
        return self.file_pattern.format(stem=source_stem, Stem=capitalized) + extension


LANGUAGES: Final[dict[str, LanguageProfile]] = {
    "javascript": LanguageProfile(
        key="javascript",
        name="JavaScript",
        extension=".js",
        fence_tag="javascript",
        frameworks=("jest", "mocha", "vitest"),
        conventions=(
            "Use modern ES2020+ syntax with const/let and arrow functions where natural.",
            "Import the code under test with the module style the source uses (require or import).",
            "Treat null and undefined as distinct edge cases.",
        ),
    ),
    "typescript": LanguageProfile(
        key="typescript",
        name="TypeScript",
        extension=".ts",
        fence_tag="typescript",
        frameworks=("jest", "vitest", "mocha"),
        conventions=(
            "Write strictly typed tests; avoid `any` unless the source uses it.",
            "Use ES module imports and type-only imports where appropriate.",
            "Exercise type narrowing paths and optional properties.",
        ),
    ),
    "python": LanguageProfile(
        key="python",
        name="Python",
        extension=".py",
        fence_tag="python",
        frameworks=("pytest", "unittest"),
        conventions=(
            "Follow PEP 8 naming; test functions start with `test_`.",
            "Import the code under test from its module by name.",
            "Cover None, empty containers and wrong types where the code accepts them.",
        ),
    ),
    "java": LanguageProfile(
        key="java",
        name="Java",
        extension=".java",
        fence_tag="java",
        frameworks=("junit",),
        conventions=(
            "One public test class per file, named after the class under test with a `Test` suffix.",
            "Cover null arguments and checked exceptions explicitly.",
        ),
    ),
    "csharp": LanguageProfile(
        key="csharp",
        name="C#",
        extension=".cs",
        fence_tag="csharp",
        frameworks=("nunit", "xunit"),
        conventions=(
            "Use PascalCase test method names describing scenario and expectation.",
            "Cover null references, default values and async Task methods.",
        ),
    ),
    "go": LanguageProfile(
        key="go",
        name="Go",
        extension=".go",
        fence_tag="go",
        frameworks=("gotest",),
        conventions=(
            "Tests live in the same package as the code under test.",
            "Prefer table-driven tests with t.Run subtests.",
            "Check returned errors explicitly; cover nil and zero values.",
        ),
    ),
    "ruby": LanguageProfile(
        key="ruby",
        name="Ruby",
        extension=".rb",
        fence_tag="ruby",
        frameworks=("rspec", "minitest"),
        conventions=(
            "Require the file under test relative to the spec/test file.",
            "Cover nil, empty strings and raised exceptions.",
        ),
    ),
}


FRAMEWORKS: Final[dict[str, FrameworkProfile]] = {
    "jest": FrameworkProfile(
        key="jest",
        name="Jest",
        file_pattern="{stem}.test",
        conventions=(
            "Group tests with describe() and write cases with it() or test().",
            "Assert with expect(...).toBe / toEqual / toThrow.",
            "Mock dependencies with jest.fn() and jest.mock(); reset them in beforeEach/afterEach.",
            "Use async/await with expect(...).resolves / rejects for promises; use fake timers for timeouts.",
        ),
    ),
    "vitest": FrameworkProfile(
        key="vitest",
        name="Vitest",
        file_pattern="{stem}.test",
        conventions=(
            "Import describe, it, expect and vi from 'vitest'.",
            "Mock with vi.fn() and vi.mock(); restore with vi.restoreAllMocks() in afterEach.",
            "Use vi.useFakeTimers() for timeout behaviour.",
        ),
    ),
    "mocha": FrameworkProfile(
        key="mocha",
        name="Mocha",
        file_pattern="{stem}.spec",
        conventions=(
            "Use describe()/it() with chai's expect assertions.",
            "Stub collaborators with sinon and restore them in afterEach.",
            "Return promises or use async functions for asynchronous cases.",
        ),
    ),
    "pytest": FrameworkProfile(
        key="pytest",
        name="pytest",
        file_pattern="test_{stem}",
        conventions=(
            "Use plain assert statements and pytest.raises for error paths.",
            "Share setup through fixtures; use pytest.mark.parametrize for boundary tables.",
            "Mock with unittest.mock or the monkeypatch fixture.",
            "Use pytest.mark.asyncio for coroutine tests.",
        ),
    ),
    "unittest": FrameworkProfile(
        key="unittest",
        name="unittest",
        file_pattern="test_{stem}",
        conventions=(
            "Subclass unittest.TestCase; use setUp/tearDown for shared state.",
            "Assert with self.assertEqual / assertRaises / assertIsNone.",
            "Mock with unittest.mock.patch; use IsolatedAsyncioTestCase for coroutines.",
        ),
    ),
    "junit": FrameworkProfile(
        key="junit",
        name="JUnit 5",
        file_pattern="{Stem}Test",
        conventions=(
            "Annotate tests with @Test; share setup in @BeforeEach / @AfterEach.",
            "Assert with org.junit.jupiter.api.Assertions (assertEquals, assertThrows).",
            "Mock collaborators with Mockito (@Mock, when(...).thenReturn(...)).",
            "Use @ParameterizedTest for boundary values and assertTimeout for slow paths.",
        ),
    ),
    "nunit": FrameworkProfile(
        key="nunit",
        name="NUnit",
        file_pattern="{Stem}Tests",
        conventions=(
            "Mark classes with [TestFixture] and methods with [Test]; use [SetUp]/[TearDown].",
            "Assert with Assert.That(..., Is.EqualTo(...)) and Assert.Throws.",
            "Mock dependencies with Moq; use [TestCase] for boundary tables.",
        ),
    ),
    "xunit": FrameworkProfile(
        key="xunit",
        name="xUnit",
        file_pattern="{Stem}Tests",
        conventions=(
            "Use [Fact] for single cases and [Theory] with [InlineData] for tables.",
            "Set up in the constructor and clean up via IDisposable.",
            "Assert with Assert.Equal / Assert.Throws / Assert.ThrowsAsync; mock with Moq.",
        ),
    ),
    "gotest": FrameworkProfile(
        key="gotest",
        name="Go testing",
        file_pattern="{stem}_test",
        conventions=(
            "Write func TestXxx(t *testing.T) functions using the standard testing package.",
            "Report failures with t.Errorf / t.Fatalf; use t.Cleanup for teardown.",
            "Use context.WithTimeout to cover timeouts of blocking calls.",
        ),
    ),
    "rspec": FrameworkProfile(
        key="rspec",
        name="RSpec",
        file_pattern="{stem}_spec",
        conventions=(
            "Use describe/context/it blocks with expect(...).to matchers.",
            "Share setup with let and before; stub with allow(...).to receive.",
        ),
    ),
    "minitest": FrameworkProfile(
        key="minitest",
        name="Minitest",
        file_pattern="test_{stem}",
        conventions=(
            "Subclass Minitest::Test; use setup/teardown methods.",
            "Assert with assert_equal / assert_raises / assert_nil.",
        ),
    ),
}


UNIVERSAL_REQUIREMENTS: Final[tuple[str, ...]] = (
    "Cover every public function, method and class in the provided code.",
    "Include edge cases: null/undefined/None-equivalent inputs, empty values, "
    "boundary values (zero, negative, maximum sizes) and invalid types where relevant.",
    "Test error paths: every thrown or returned error should have a test.",
    "For asynchronous operations, cover success, failure and timeout.",
    "Mock external dependencies (network, filesystem, clock, randomness) so tests are deterministic.",
    "Give every test a descriptive name and keep tests independent of each other.",
    "Produce complete, runnable test files including all imports.",
)


# Extensions recognised when looking for file names in model output
CODE_EXTENSIONS: Final[tuple[str, ...]] = tuple(sorted(
    {profile.extension.lstrip(".") for profile in LANGUAGES.values()}
    | {"jsx", "tsx", "mjs", "cjs", "kt", "php", "rs", "cpp", "c", "h", "swift"},
    key=lambda ext: (-len(ext), ext),
))


def get_language(key: str) -> LanguageProfile | None:
    return LANGUAGES.get(key.strip().lower())


def get_framework(key: str) -> FrameworkProfile | None:
    return FRAMEWORKS.get(key.strip().lower())
