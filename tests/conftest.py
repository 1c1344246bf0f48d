import io
import pytest
import sys
from pathlib import Path
from PIL import Image

# Add src to sys.path so we can import quiz_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from quiz_toolkit.config import ConversionOptions  # noqa: E402
from quiz_toolkit.core.models.package import Package  # noqa: E402


# Common test fixtures
@pytest.fixture
def options():
    """Return default conversion options for a test course."""
    return ConversionOptions(course_code="MAT3500", subject="discrete-math")


@pytest.fixture
def png_bytes():
    """Create a small PNG image in memory."""
    img = Image.new("RGB", (20, 10), color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


SAMPLE_MARKUP = r"""
% Graph theory quiz
\baitracnghiem{graph:q01}{How many edges does $K_4$ have?}{\bonpa{C}{4}{5}{6}{8}}{$\binom{4}{2} = 6$}
\baidienvao{graph:q02}{A tree with $n$ vertices has \blank{n-1} edges and \answer{1} component.}{By induction.}
"""


@pytest.fixture
def sample_markup():
    """Return markup with one single-choice and one two-blank question."""
    return SAMPLE_MARKUP


# ─────────────────────────────────────────────────────────────────────────────
# Hand-written exchange package
# ─────────────────────────────────────────────────────────────────────────────

QTI_HASH = "gfixture"
QTI_PATH = f"{QTI_HASH}/{QTI_HASH}.xml"
META_PATH = f"{QTI_HASH}/assessment_meta.xml"

MANIFEST_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<manifest identifier="m1" xmlns="http://www.imsglobal.org/xsd/imsccv1p1/imscp_v1p1">
  <resources>
    <resource identifier="{QTI_HASH}" type="imsqti_xmlv1p2">
      <file href="{QTI_PATH}"/>
      <dependency identifierref="{QTI_HASH}meta"/>
    </resource>
    <resource identifier="{QTI_HASH}meta" type="associatedcontent/imscc_xmlv1p1/learning-application-resource" href="{META_PATH}">
      <file href="{META_PATH}"/>
    </resource>
    <resource identifier="web1" type="webcontent" href="web_resources/img/graph.png">
      <file href="web_resources/img/graph.png"/>
    </resource>
  </resources>
</manifest>
"""

META_XML = """<?xml version="1.0" encoding="UTF-8"?>
<quiz identifier="gfixture" xmlns="http://canvas.instructure.com/xsd/cccv1p0">
  <title>Quiz Đồ thị</title>
  <points_possible>6</points_possible>
  <shuffle_answers>false</shuffle_answers>
</quiz>
"""


def _metadata(question_type, points="1"):
    return f"""
      <itemmetadata><qtimetadata>
        <qtimetadatafield><fieldlabel>question_type</fieldlabel><fieldentry>{question_type}</fieldentry></qtimetadatafield>
        <qtimetadatafield><fieldlabel>points_possible</fieldlabel><fieldentry>{points}</fieldentry></qtimetadatafield>
      </qtimetadata></itemmetadata>"""


def _label(ident, text):
    return (
        f'<response_label ident="{ident}"><material>'
        f'<mattext texttype="text/html">&lt;p&gt;{text}&lt;/p&gt;</mattext>'
        f"</material></response_label>"
    )


def _full_score(condition):
    return (
        f"<respcondition><conditionvar>{condition}</conditionvar>"
        f'<setvar varname="SCORE" action="Set">100</setvar></respcondition>'
    )


ITEMS = {
    "single_choice": f"""
    <item ident="i1">{_metadata("multiple_choice_question", "2")}
      <presentation>
        <material><mattext texttype="text/html">&lt;p&gt;Degree of a leaf? &lt;img src="$IMS-CC-FILEBASE$/img/graph.png"/&gt;&lt;/p&gt;</mattext></material>
        <response_lid ident="response1" rcardinality="Single"><render_choice>
          {_label("101", "0")}{_label("102", "1")}{_label("103", "2")}
        </render_choice></response_lid>
      </presentation>
      <resprocessing>{_full_score('<varequal respident="response1">102</varequal>')}</resprocessing>
    </item>""",
    "short_answer": f"""
    <item ident="i2">{_metadata("short_answer_question")}
      <presentation>
        <material><mattext texttype="text/html">&lt;p&gt;Vertices of &lt;img class="equation_image" data-equation-content="K_5"/&gt;?&lt;/p&gt;</mattext></material>
        <response_str ident="response1" rcardinality="Single"><render_fib><response_label ident="answer1"/></render_fib></response_str>
      </presentation>
      <resprocessing>
        {_full_score('<varequal respident="response1">5</varequal>')}
        {_full_score('<varequal respident="response1">five</varequal>')}
      </resprocessing>
    </item>""",
    "multi_select": f"""
    <item ident="i3">{_metadata("multiple_answers_question")}
      <presentation>
        <material><mattext texttype="text/html">&lt;p&gt;Which graphs are bipartite?&lt;/p&gt;</mattext></material>
        <response_lid ident="response1" rcardinality="Multiple"><render_choice>
          {_label("201", "C4")}{_label("202", "K3")}{_label("203", "Path")}
        </render_choice></response_lid>
      </presentation>
      <resprocessing>{_full_score(
        '<and><varequal respident="response1">203</varequal>'
        '<varequal respident="response1">201</varequal>'
        '<not><varequal respident="response1">202</varequal></not></and>'
      )}</resprocessing>
    </item>""",
    "unknown": f"""
    <item ident="i4">{_metadata("unknown_x")}
      <presentation>
        <material><mattext texttype="text/html">&lt;p&gt;Essay&lt;/p&gt;</mattext></material>
      </presentation>
    </item>""",
    "multi_blank": f"""
    <item ident="i5">{_metadata("fill_in_multiple_blanks_question")}
      <presentation>
        <material><mattext texttype="text/html">&lt;p&gt;A [v] graph has [e] edges.&lt;/p&gt;</mattext></material>
        <response_lid ident="response_v"><material><mattext>v</mattext></material><render_choice>
          {_label("301", "complete")}{_label("302", "empty")}
        </render_choice></response_lid>
        <response_lid ident="response_e"><material><mattext>e</mattext></material><render_choice>
          {_label("401", "many")}{_label("402", "no")}
        </render_choice></response_lid>
      </presentation>
      <resprocessing>
        {_full_score('<varequal respident="response_v">302</varequal>')}
        {_full_score('<varequal respident="response_e">402</varequal>')}
      </resprocessing>
    </item>""",
    "percent_short_answer": f"""
    <item ident="i6">{_metadata("short_answer_question")}
      <presentation>
        <material><mattext texttype="text/html">&lt;p&gt;Discount is 50% off&lt;/p&gt;</mattext></material>
        <response_str ident="response1" rcardinality="Single"><render_fib><response_label ident="answer1"/></render_fib></response_str>
      </presentation>
      <resprocessing>{_full_score('<varequal respident="response1">50%</varequal>')}</resprocessing>
    </item>""",
    "brace_single_choice": f"""
    <item ident="i7">{_metadata("multiple_choice_question")}
      <presentation>
        <material><mattext texttype="text/html">&lt;p&gt;Set {{1, 2 has how many elements?&lt;/p&gt;</mattext></material>
        <response_lid ident="response1" rcardinality="Single"><render_choice>
          {_label("701", "{1")}{_label("702", "2}")}{_label("703", "3")}
        </render_choice></response_lid>
      </presentation>
      <resprocessing>{_full_score('<varequal respident="response1">702</varequal>')}</resprocessing>
    </item>""",
}


def make_qti(*names):
    """Item document holding the named fixture items, in order."""
    body = "".join(ITEMS[name] for name in names)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<questestinterop xmlns="http://www.imsglobal.org/xsd/ims_qtiasiv1p2">
  <assessment ident="{QTI_HASH}" title="fixture">
    <section ident="root_section">{body}
    </section>
  </assessment>
</questestinterop>
"""


def make_package(*names, png=b"", with_meta=True):
    """Package with a manifest, one item document and the image asset."""
    package = Package()
    package.add("imsmanifest.xml", MANIFEST_XML)
    package.add(QTI_PATH, make_qti(*names))
    if with_meta:
        package.add(META_PATH, META_XML)
    if png:
        package.add("web_resources/img/graph.png", png)
    return package


@pytest.fixture
def fixture_package(png_bytes):
    """Package with every item shape plus one unknown item."""
    return make_package(
        "single_choice", "short_answer", "multi_select", "unknown", "multi_blank",
        png=png_bytes,
    )


@pytest.fixture
def package_factory():
    """Return the hand-written package builder."""
    return make_package
