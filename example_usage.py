"""
Example Usage of the Match Analyzer
===================================
This file demonstrates various ways to use Model V1.
"""

import json
import logging

from exceptions import AnalysisError, ValidationError
from match_analyzer import MatchAnalyzer
from match_insights import format_analysis, performance_trend_frame, score_distribution_frame
from match_records import MatchCategory


def example_1_sample_data():
    """Full analysis of the built-in sample."""
    print("=" * 70)
    print("EXAMPLE 1: Sample Data - Liverpool vs Manchester City")
    print("=" * 70)

    analyzer = MatchAnalyzer()
    analyzer.load_sample_data()

    result = analyzer.analyze()
    print(format_analysis(result))


def example_2_home_cup_final():
    """High-stakes match with team 1 at home."""
    print("\n" + "=" * 70)
    print("EXAMPLE 2: Cup Final - Arsenal at Home vs Chelsea")
    print("=" * 70)

    analyzer = MatchAnalyzer()
    analyzer.configure(
        team1_name="Arsenal",
        team2_name="Chelsea",
        team1_ranking=3,
        team2_ranking=9,
        match_importance=1.5,
        match_location="home",
        total_line=2.5,
        point_spread=0.5,
    )
    analyzer.ingest(MatchCategory.H2H, [2, 1, 3, 0], [1, 1, 1, 0])
    analyzer.ingest(MatchCategory.TEAM1_SERIES, [2, 3, 1, 2, 2], [1, 0, 1, 2, 1])
    analyzer.ingest(MatchCategory.TEAM2_SERIES, [1, 2, 2, 1, 0], [1, 1, 2, 0, 2])

    print(format_analysis(analyzer.analyze()))


def example_3_json_output():
    """Example of JSON output for API usage."""
    print("\n" + "=" * 70)
    print("EXAMPLE 3: JSON Output - For API Integration")
    print("=" * 70)

    analyzer = MatchAnalyzer()
    analyzer.load_sample_data()
    result = analyzer.analyze()

    json_result = {
        "match": f"{result.config.team1_name} vs {result.config.team2_name}",
        "probabilities": {key: round(val, 1) for key, val in result.probabilities.as_dict().items()},
        "projected_score": "{}-{}".format(*result.projected_score),
        "projected_total": round(result.projected_total, 2),
        "projected_margin": round(result.projected_margin, 2),
        "recommendations": {
            "total": result.betting.over_under.recommendation,
            "spread": result.betting.spread.recommendation,
        },
        "top_scores": [
            {"score": s.label, "probability": round(s.probability, 1)}
            for s in result.score_distribution[:5]
        ],
        "feature_importance": result.feature_importance,
        "insights": [insight.message for insight in result.insights],
        "data_quality": result.features.data_quality.level,
    }

    print(json.dumps(json_result, indent=2))


def example_4_chart_data():
    """Score distribution and performance trends as DataFrames."""
    print("\n" + "=" * 70)
    print("EXAMPLE 4: Chart Data - pandas Frames")
    print("=" * 70)

    analyzer = MatchAnalyzer()
    analyzer.load_sample_data()
    result = analyzer.analyze()

    print("\nScore distribution (top 8):")
    print(score_distribution_frame(result.score_distribution).head(8).to_string(index=False))

    team1_trend, team2_trend = result.performance_trends
    print("\nPerformance trends:")
    print(performance_trend_frame(team1_trend, team2_trend,
                                  result.config.team1_name, result.config.team2_name).round(1))


def example_5_limited_data():
    """Analysis with very little data regresses toward neutral values."""
    print("\n" + "=" * 70)
    print("EXAMPLE 5: Limited Data - Regression Toward the Mean")
    print("=" * 70)

    analyzer = MatchAnalyzer()
    analyzer.configure(team1_name="Brentford", team2_name="Fulham")
    analyzer.ingest(MatchCategory.H2H, [3, 0], [1, 0])

    quality = analyzer.data_quality()
    print(f"\nData quality: {quality.level} ({quality.total_matches} matches, "
          f"{quality.matches_needed} more needed)")
    print(format_analysis(analyzer.analyze()))


def example_6_error_handling():
    """Validation errors are raised before anything changes."""
    print("\n" + "=" * 70)
    print("EXAMPLE 6: Error Handling")
    print("=" * 70)

    analyzer = MatchAnalyzer()
    try:
        analyzer.analyze()
    except ValidationError as e:
        print(f"\n  • No data: {e}")

    try:
        analyzer.ingest(MatchCategory.TEAM1_SERIES, [1, -2], [0, 1])
    except ValidationError as e:
        print(f"  • Negative score: {e}")

    result = analyzer.ingest(MatchCategory.TEAM1_SERIES, [1, 2, 3], [0, 1])
    print(f"  • Unequal arrays: {result.warning}")

    analyzer.configure(team1_name="Same", team2_name="Same")
    try:
        analyzer.analyze()
    except (ValidationError, AnalysisError) as e:
        print(f"  • Identical names: {e}")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Run all examples
    example_1_sample_data()
    example_2_home_cup_final()
    example_3_json_output()
    example_4_chart_data()
    example_5_limited_data()
    example_6_error_handling()

    print("\n" + "=" * 70)
    print("All examples completed!")
    print("=" * 70)
